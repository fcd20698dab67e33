"""
Leaderboard Writer — replace one category's stored ranking as a whole set.

Runs inside the caller's transaction: delete every row for the category, then
bulk-insert the new set. The caller commits or rolls back, so readers only
ever see the old set or the new one.
"""
import logging
from datetime import datetime
from decimal import ROUND_HALF_UP
from typing import Sequence

from leaderboard.models.top_creator import TopCreator
from leaderboard.ranking.base import RankedCreator, REVIEW_QUANTUM

logger = logging.getLogger('ranking.writer')


def validate_ranking(ranked: Sequence[RankedCreator]) -> None:
    """Raise ValueError unless ranks are exactly 1..n and creators are unique."""
    positions = [r.rank_position for r in ranked]
    if positions != list(range(1, len(ranked) + 1)):
        raise ValueError(f"Rank positions must be dense 1..{len(ranked)}, got {positions}")
    creator_ids = [r.creator_id for r in ranked]
    if len(set(creator_ids)) != len(creator_ids):
        raise ValueError("Duplicate creator in ranking")


def replace_leaderboard(session, category_id, ranked: Sequence[RankedCreator], now: datetime) -> int:
    """
    Swap the category's stored rows for `ranked`, stamped with `now`.

    Does not commit. Returns the number of rows inserted; an empty `ranked`
    leaves the category with no rows.
    """
    validate_ranking(ranked)

    deleted = (
        session.query(TopCreator)
        .filter(TopCreator.category_id == category_id)
        .delete(synchronize_session=False)
    )
    session.flush()

    session.add_all([
        TopCreator(
            category_id=category_id,
            creator_id=r.creator_id,
            rank_position=r.rank_position,
            score=r.score,
            follower_count=r.follower_count,
            avg_review_score=r.avg_review_score.quantize(REVIEW_QUANTUM, rounding=ROUND_HALF_UP),
            collab_count=r.collab_count,
            last_updated=now,
        )
        for r in ranked
    ])
    session.flush()

    logger.debug("Category %s: replaced %d rows with %d", category_id, deleted, len(ranked))
    return len(ranked)
