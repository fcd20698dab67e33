"""
Shared client instances — Redis.

redis.from_url() does not connect until the first command, so importing this
module is always safe (even when Redis is down during tests).
"""
import logging

import redis

from leaderboard.config import REDIS_URL

logger = logging.getLogger('leaderboard.extensions')

# ── Redis ─────────────────────────────────────────────────────────────────────
redis_client = redis.from_url(REDIS_URL, decode_responses=True)


# ── RQ (lazy, so the web process never touches Redis at import) ──────────────

_queue = None


def get_queue():
    """Return the shared RQ queue used for async ranking runs."""
    global _queue
    if _queue is None:
        from rq import Queue
        # RQ pickles job payloads, so it needs a connection without decode_responses
        _queue = Queue('ranking', connection=redis.from_url(REDIS_URL))
        logger.info("RQ queue 'ranking' initialized")
    return _queue
