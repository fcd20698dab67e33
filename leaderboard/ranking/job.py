"""
Ranking Job Orchestrator — rebuild the leaderboard of every active category.

Categories are independent: one failing category is logged and counted, the
rest still run. Only failing to list the categories at all is fatal.

The whole run holds the RunGuard, so a manual trigger cannot overlap the
scheduled one.
"""
import logging
import threading
import time
from datetime import datetime
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

from leaderboard.config import RANKING_DEFAULT_LIMIT
from leaderboard.ranking.base import RunResult, CategoryProcessingError
from leaderboard.ranking.guard import RunGuard
from leaderboard.ranking.processor import CategoryProcessor
from leaderboard.services.db import list_active_categories

logger = logging.getLogger('ranking.job')

PROCESSED = 'processed'
FAILED = 'failed'
CANCELLED = 'cancelled'


class TopCreatorJob:
    """
    Usage:
        job = TopCreatorJob(get_session, CategoryProcessor(get_session), RunGuard('top_creators'))
        result = job.calculate_top_creators(limit=5)
        result.to_dict()  # {'success': True, 'stats': {'totalProcessed': ...}, ...}
    """

    def __init__(self, session_factory: Callable, processor: CategoryProcessor,
                 guard: RunGuard, max_workers: int = 1):
        self.session_factory = session_factory
        self.processor = processor
        self.guard = guard
        self.max_workers = max(1, max_workers)

    @property
    def is_running(self) -> bool:
        return self.guard.is_running

    def calculate_top_creators(self, limit: int = RANKING_DEFAULT_LIMIT,
                               cancel_event: Optional[threading.Event] = None,
                               as_of: Optional[datetime] = None) -> RunResult:
        """
        Process every active category and return the run summary.

        Raises RunInProgressError if another run holds the guard, and lets
        category-listing errors propagate. When cancel_event is set, categories
        that have not started yet are skipped; one already running finishes
        (or rolls back) normally. `as_of` is the last_updated stamp for every
        row written; None means each category stamps with the clock.
        """
        with self.guard.hold():
            return self._run(limit, cancel_event, as_of)

    def _run(self, limit, cancel_event, as_of) -> RunResult:
        started = time.monotonic()
        logger.info("Starting top creators calculation job", extra={'context': {'limit': limit}})

        try:
            category_ids = self._list_category_ids()
        except Exception:
            logger.error("Top creators calculation job failed", exc_info=True)
            raise

        if not category_ids:
            logger.warning("No active categories found for top creators calculation")
            return RunResult(success=True, message='No active categories found',
                             duration_seconds=round(time.monotonic() - started, 3))

        result = RunResult(success=True, message='Top creators calculated successfully',
                           categories_count=len(category_ids))

        outcomes = self._process_all(category_ids, limit, cancel_event, as_of)
        for category_id, outcome, error in outcomes:
            if outcome == PROCESSED:
                result.total_processed += 1
            elif outcome == CANCELLED:
                result.cancelled += 1
            else:
                result.total_errors += 1
                result.errors[category_id] = error

        if result.cancelled:
            result.message = 'Top creators calculation cancelled before all categories ran'
        result.duration_seconds = round(time.monotonic() - started, 3)

        logger.info("Top creators calculation job completed", extra={'context': {
            'totalProcessed': result.total_processed,
            'totalErrors': result.total_errors,
            'categoriesCount': result.categories_count,
            'cancelled': result.cancelled,
        }})
        return result

    def _list_category_ids(self) -> List[str]:
        session = self.session_factory()
        try:
            return [c.category_id for c in list_active_categories(session)]
        finally:
            session.close()

    def _process_all(self, category_ids, limit, cancel_event,
                     as_of) -> List[Tuple[str, str, Optional[str]]]:
        if self.max_workers == 1:
            return [self._process_one(cid, limit, cancel_event, as_of) for cid in category_ids]

        with ThreadPoolExecutor(max_workers=self.max_workers,
                                thread_name_prefix='ranking') as pool:
            futures = [pool.submit(self._process_one, cid, limit, cancel_event, as_of)
                       for cid in category_ids]
            return [f.result() for f in futures]

    def _process_one(self, category_id, limit, cancel_event,
                     as_of) -> Tuple[str, str, Optional[str]]:
        """Run one category; never raises. Returns (category_id, outcome, error)."""
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Run cancelled, skipping category %s", category_id)
            return category_id, CANCELLED, None
        try:
            self.processor.process(category_id, limit, as_of=as_of)
            return category_id, PROCESSED, None
        except CategoryProcessingError as e:
            logger.error("Error processing category %s: %s", category_id, e.cause,
                         extra={'context': {'category_id': category_id}})
            return category_id, FAILED, str(e.cause)
        except Exception as e:
            logger.error("Unexpected error processing category %s", category_id, exc_info=True)
            return category_id, FAILED, str(e)
