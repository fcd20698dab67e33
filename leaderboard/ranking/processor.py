"""
Category Processor — read, score and write one category in one transaction.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, List

from leaderboard.ranking.base import CategoryProcessingError, RankedCreator
from leaderboard.ranking.metrics import MetricsReader
from leaderboard.ranking.scoring import rank_creators
from leaderboard.ranking.writer import replace_leaderboard

logger = logging.getLogger('ranking.processor')


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CategoryProcessor:
    """
    Owns the transaction for one category.

    Each call opens a fresh session from session_factory, so categories
    processed on different threads never share a connection.
    """

    def __init__(self, session_factory: Callable, reader: MetricsReader = None,
                 clock: Callable[[], datetime] = utc_now):
        self.session_factory = session_factory
        self.reader = reader or MetricsReader()
        self.clock = clock

    def process(self, category_id, limit: int, as_of: datetime = None) -> List[RankedCreator]:
        """
        Rebuild the leaderboard for one category.

        Rows are stamped with `as_of` when given (a scheduled run passes its
        fire time), otherwise with the clock.

        A category with no qualifying creators is committed with zero rows
        (clearing any previous leaderboard) and counts as success. Any error
        rolls the whole category back and is raised as CategoryProcessingError.
        """
        now = as_of or self.clock()
        session = self.session_factory()
        try:
            logger.info("Processing category: %s", category_id)
            metrics = self.reader.read(session, category_id)

            if not metrics:
                logger.warning("No creators found for category %s", category_id)
                replace_leaderboard(session, category_id, [], now)
                session.commit()
                return []

            ranked = rank_creators(metrics, limit)
            replace_leaderboard(session, category_id, ranked, now)
            session.commit()

            logger.info("Successfully processed %d top creators for category %s",
                        len(ranked), category_id)
            return ranked
        except Exception as e:
            session.rollback()
            logger.error("Failed to process category %s", category_id,
                         exc_info=True, extra={'context': {'category_id': category_id}})
            raise CategoryProcessingError(category_id, e) from e
        finally:
            session.close()
