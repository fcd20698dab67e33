"""
Freshness gate — is the stored leaderboard older than a threshold?

Used by the scheduler (skip redundant daily runs) and by the read API
(suggest a refresh when nothing is stored).
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from leaderboard.services.db import get_max_last_updated

logger = logging.getLogger('ranking.freshness')


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way out; stored stamps are always UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class FreshnessGate:

    def __init__(self, session_factory: Callable, clock: Callable[[], datetime] = None):
        self.session_factory = session_factory
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def get_last_update_time(self) -> Optional[datetime]:
        """Newest last_updated across all leaderboard rows, or None.

        A failed lookup is logged and treated as "never updated".
        """
        session = self.session_factory()
        try:
            value = get_max_last_updated(session)
            return _as_utc(value) if value is not None else None
        except Exception:
            logger.error("Error getting last update time", exc_info=True)
            return None
        finally:
            session.close()

    def should_update(self, interval_hours: float = 24) -> bool:
        """True on first run, or once interval_hours have passed since the last update."""
        last_update = self.get_last_update_time()
        if last_update is None:
            return True
        return self.clock() - last_update >= timedelta(hours=interval_hours)
