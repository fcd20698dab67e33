"""
Run guard — keeps two ranking runs from racing on the same leaderboard rows.

Two layers:
  - a process-local threading.Lock (scheduler thread vs. admin request)
  - a Redis lock keyed lock:<job name> (web process vs. RQ worker)

Both are non-blocking: a second run is rejected with RunInProgressError, not
queued. If Redis is unreachable the guard logs a warning and relies on the
local lock alone, same fail-open stance as the rest of the Redis usage.
The Redis lock carries a timeout so a crashed holder cannot wedge the job.
"""
import logging
import threading
from contextlib import contextmanager

from redis.exceptions import RedisError, LockError

from leaderboard.ranking.base import RunInProgressError

logger = logging.getLogger('ranking.guard')


class RunGuard:

    PREFIX = 'lock'

    def __init__(self, name, redis_client=None, timeout=3600):
        self.name = name
        self.redis = redis_client
        self.timeout = timeout
        self._local = threading.Lock()

    @property
    def key(self):
        return f'{self.PREFIX}:{self.name}'

    @property
    def is_running(self):
        """True while this process or any other holds the run lock."""
        return self._local.locked() or self._held_elsewhere()

    def _held_elsewhere(self):
        if self.redis is None:
            return False
        try:
            return bool(self.redis.exists(self.key))
        except RedisError as e:
            logger.warning("Could not check run lock %s: %s", self.key, e)
            return False

    @contextmanager
    def hold(self):
        """Hold the guard for the duration of the block or raise RunInProgressError."""
        if not self._local.acquire(blocking=False):
            raise RunInProgressError(self.name)
        redis_lock = None
        try:
            redis_lock = self._acquire_redis()
            yield self
        finally:
            if redis_lock is not None:
                self._release_redis(redis_lock)
            self._local.release()

    def _acquire_redis(self):
        if self.redis is None:
            return None
        try:
            lock = self.redis.lock(self.key, timeout=self.timeout, blocking=False)
            acquired = lock.acquire()
        except RedisError as e:
            logger.warning("Redis lock unavailable for %s (%s), using process-local lock only",
                           self.key, e)
            return None
        if not acquired:
            logger.warning("Run lock %s is held by another process", self.key)
            raise RunInProgressError(self.name)
        return lock

    def _release_redis(self, lock):
        try:
            lock.release()
        except LockError:
            # Lock expired (run outlived the timeout) or was taken over
            logger.warning("Run lock %s was no longer owned at release", self.key)
        except RedisError as e:
            logger.warning("Failed to release run lock %s: %s", self.key, e)
