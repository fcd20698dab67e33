"""
Scheduler — recurring and on-demand triggers for the ranking job.

SchedulerService is built once in create_app() and owns its jobs; nothing
here is module-global. Job lifecycle:

    (unscheduled) --schedule()--> scheduled/stopped --start()--> running
    running --stop()--> scheduled/stopped --restart()--> running

Each started job runs one daemon thread that sleeps on an Event until the
crontab's next fire time, so stop() wakes it immediately. Trigger arithmetic
comes from celery's crontab; no Celery worker or beat is involved.
"""
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, Optional, Set

from celery.schedules import crontab

from leaderboard.config import (
    RANKING_CRON_HOUR, RANKING_CRON_MINUTE, RANKING_DEFAULT_LIMIT,
    RANKING_STALE_HOURS, TOP_CREATORS_JOB,
)
from leaderboard.ranking.base import JobNotFoundError, RunInProgressError, RunResult
from leaderboard.ranking.freshness import FreshnessGate
from leaderboard.ranking.job import TopCreatorJob
from leaderboard.ranking.processor import utc_now

logger = logging.getLogger('ranking.scheduler')


class ScheduledJob:
    """
    One named recurring callback.

    trigger is anything with remaining_estimate(last_run_at) -> timedelta,
    normally a celery crontab.
    """

    def __init__(self, name: str, callback: Callable[[], object], trigger,
                 clock: Callable[[], datetime] = utc_now):
        self.name = name
        self.callback = callback
        self.trigger = trigger
        self.clock = clock
        self.last_run_at: Optional[datetime] = None
        self.scheduled_for: Optional[datetime] = None  # fire time of the tick in progress
        self._anchor: Optional[datetime] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def next_run_at(self) -> datetime:
        # remaining_estimate() is measured from now, not from the anchor
        now = self.clock()
        return now + self.trigger.remaining_estimate(self._anchor or now)

    def start(self):
        if self.running:
            return
        self._stop = threading.Event()
        self._anchor = self.clock()
        self._thread = threading.Thread(target=self._loop, args=(self._stop,),
                                        name=f'scheduler-{self.name}', daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0):
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    def _loop(self, stop: threading.Event):
        while not stop.is_set():
            target = self.next_run_at()
            # Wait out the full delay; a wake-up a hair early must not fire twice
            while not stop.is_set():
                remaining = (target - self.clock()).total_seconds()
                if remaining <= 0:
                    break
                stop.wait(remaining)
            if stop.is_set():
                break

            self._anchor = target
            self.scheduled_for = target
            self.last_run_at = self.clock()
            try:
                self.callback()
            except Exception:
                logger.error("Scheduled job %s raised", self.name, exc_info=True)


class SchedulerService:
    """
    Usage:
        scheduler = SchedulerService(job, FreshnessGate(get_session))
        scheduler.initialize()        # startup check + start the daily job
        scheduler.run_now()           # manual trigger, bypasses the freshness gate
        scheduler.shutdown()
    """

    def __init__(self, job: TopCreatorJob, freshness: FreshnessGate,
                 limit: int = RANKING_DEFAULT_LIMIT, stale_hours: float = RANKING_STALE_HOURS,
                 clock: Callable[[], datetime] = utc_now):
        self.job = job
        self.freshness = freshness
        self.limit = limit
        self.stale_hours = stale_hours
        self.clock = clock
        self._jobs: Dict[str, ScheduledJob] = {}
        self._in_flight: Set[threading.Event] = set()
        self._runs_lock = threading.Lock()

    # ── Registry ──────────────────────────────────────────────────────

    def schedule(self, name: str, callback: Callable[[], object], trigger) -> ScheduledJob:
        """Register (or replace) a job in the stopped state."""
        existing = self._jobs.get(name)
        if existing is not None:
            existing.stop()
        scheduled = ScheduledJob(name, callback, trigger, clock=self.clock)
        self._jobs[name] = scheduled
        return scheduled

    def schedule_top_creators_job(self) -> ScheduledJob:
        """Daily leaderboard rebuild, 02:00 UTC unless configured otherwise."""
        trigger = crontab(minute=RANKING_CRON_MINUTE, hour=RANKING_CRON_HOUR, nowfun=self.clock)
        scheduled = self.schedule(TOP_CREATORS_JOB, self.run_scheduled_top_creators, trigger)
        logger.info("Top creators job scheduled", extra={'context': {
            'cron': f'{RANKING_CRON_MINUTE} {RANKING_CRON_HOUR} * * *',
            'timezone': 'UTC',
        }})
        return scheduled

    def get(self, name: str) -> ScheduledJob:
        scheduled = self._jobs.get(name)
        if scheduled is None:
            raise JobNotFoundError(name)
        return scheduled

    def start(self, name: str):
        self.get(name).start()
        logger.info("Started job: %s", name)

    def stop(self, name: str):
        self.get(name).stop()
        logger.info("Stopped job: %s", name)

    def restart(self, name: str):
        scheduled = self.get(name)
        scheduled.stop()
        scheduled.start()
        logger.info("Restarted job: %s", name)

    def start_all(self):
        for scheduled in self._jobs.values():
            scheduled.start()
        logger.info("Started %d scheduled jobs", len(self._jobs))

    def stop_all(self):
        for name, scheduled in self._jobs.items():
            scheduled.stop()
            logger.info("Stopped job: %s", name)

    def status(self) -> Dict[str, dict]:
        jobs = {}
        for name, scheduled in self._jobs.items():
            try:
                next_run = scheduled.next_run_at().isoformat() if scheduled.running else None
            except Exception:
                next_run = None
            jobs[name] = {
                'running': scheduled.running,
                'scheduled': True,
                'nextRun': next_run,
                'lastRun': scheduled.last_run_at.isoformat() if scheduled.last_run_at else None,
            }
        return jobs

    # ── Triggers ──────────────────────────────────────────────────────

    @contextmanager
    def _cancellable(self):
        """Fresh cancel event for one run; shutdown() sets every in-flight one."""
        cancel = threading.Event()
        with self._runs_lock:
            self._in_flight.add(cancel)
        try:
            yield cancel
        finally:
            with self._runs_lock:
                self._in_flight.discard(cancel)

    def run_scheduled_top_creators(self) -> Optional[RunResult]:
        """
        Daily tick. Skips when the leaderboard is still fresh; never raises,
        so the recurring thread survives any failure.

        Rows are stamped with the tick's fire time rather than the finish
        time, so the next day's tick sees exactly 24 hours of age.
        """
        try:
            logger.info("Starting scheduled top creators calculation job")
            if not self.freshness.should_update(self.stale_hours):
                logger.info("Top creators data is still fresh, skipping update")
                return None

            tick = self._jobs.get(TOP_CREATORS_JOB)
            as_of = tick.scheduled_for if tick is not None else None
            with self._cancellable() as cancel:
                result = self.job.calculate_top_creators(self.limit, cancel_event=cancel, as_of=as_of)
            logger.info("Scheduled top creators calculation completed",
                        extra={'context': result.to_dict()['stats']})
            return result
        except RunInProgressError:
            logger.warning("Scheduled top creators calculation skipped: a run is already in progress")
            return None
        except Exception:
            logger.error("Scheduled top creators calculation failed", exc_info=True)
            return None

    def run_now(self, limit: Optional[int] = None) -> RunResult:
        """Immediate run that ignores freshness. Errors propagate to the caller."""
        logger.info("Running immediate top creators calculation")
        with self._cancellable() as cancel:
            result = self.job.calculate_top_creators(limit or self.limit, cancel_event=cancel)
        logger.info("Immediate top creators calculation completed",
                    extra={'context': result.to_dict()['stats']})
        return result

    # ── Lifecycle ─────────────────────────────────────────────────────

    def initialize(self):
        """
        Startup hook: rebuild now if there is no leaderboard or it is stale,
        then start the daily job. A failed startup run is logged; the daily
        job is started regardless.
        """
        logger.info("Initializing job scheduler")
        last_update = self.freshness.get_last_update_time()
        needs_run = False
        if last_update is None:
            logger.info("No existing top creators data found, running initial calculation")
            needs_run = True
        elif self.freshness.should_update(self.stale_hours):
            logger.info("Top creators data is outdated, running update")
            needs_run = True

        if needs_run:
            try:
                self.run_now()
            except Exception:
                logger.error("Initial top creators calculation failed", exc_info=True)

        self.schedule_top_creators_job()
        self.start_all()
        logger.info("Job scheduler initialized successfully")

    def shutdown(self):
        """Cancel un-started categories of an in-flight run and stop every job."""
        logger.info("Shutting down job scheduler")
        with self._runs_lock:
            for cancel in self._in_flight:
                cancel.set()
        self.stop_all()
        self._jobs.clear()
        logger.info("Job scheduler shutdown completed")
