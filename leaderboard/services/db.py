"""
Read-only data access for the ranking pipeline and the leaderboard API.

Every function takes the caller's session so the caller owns the transaction
boundary. Nothing here commits or writes.
"""
import logging
from typing import List, Optional

from sqlalchemy import func

from leaderboard.config import COMPLETED_CONTRACT_STATUS
from leaderboard.models.category import Category
from leaderboard.models.contract import Contract
from leaderboard.models.creator import Creator
from leaderboard.models.review import Review
from leaderboard.models.top_creator import TopCreator
from leaderboard.models.user import User

logger = logging.getLogger('services.db')


# ── Pipeline inputs ──────────────────────────────────────────────────────────

def list_active_categories(session) -> List[Category]:
    """All active categories, by name."""
    return (
        session.query(Category)
        .filter(Category.status.is_(True))
        .order_by(Category.category_name, Category.category_id)
        .all()
    )


def fetch_creator_metric_rows(session, category_id):
    """
    One row per qualifying creator in a category:
    (creator_id, social_media, avg_rating, collab_count).

    Qualifying = creator active, in the category, owning user active.
    Reviews and completed contracts are pre-aggregated in subqueries so the
    two one-to-many joins cannot multiply each other. Rows come back ordered
    by creator_id; the scorer relies on that order for tie-breaks.
    """
    review_stats = (
        session.query(
            Review.creator_id.label('creator_id'),
            func.avg(Review.rating).label('avg_rating'),
        )
        .group_by(Review.creator_id)
        .subquery()
    )
    collab_stats = (
        session.query(
            Contract.creator_id.label('creator_id'),
            func.count(func.distinct(Contract.contract_id)).label('collab_count'),
        )
        .filter(Contract.contract_status == COMPLETED_CONTRACT_STATUS)
        .group_by(Contract.creator_id)
        .subquery()
    )

    return (
        session.query(
            Creator.creator_id,
            Creator.social_media,
            review_stats.c.avg_rating,
            collab_stats.c.collab_count,
        )
        .join(User, User.user_id == Creator.user_id)
        .outerjoin(review_stats, review_stats.c.creator_id == Creator.creator_id)
        .outerjoin(collab_stats, collab_stats.c.creator_id == Creator.creator_id)
        .filter(
            Creator.category_id == category_id,
            Creator.status.is_(True),
            User.status.is_(True),
        )
        .order_by(Creator.creator_id)
        .all()
    )


def get_max_last_updated(session):
    """Newest last_updated across every leaderboard row, or None if empty."""
    return session.query(func.max(TopCreator.last_updated)).scalar()


# ── Leaderboard reads (API) ──────────────────────────────────────────────────

def get_active_category(session, category_id) -> Optional[Category]:
    return (
        session.query(Category)
        .filter(Category.category_id == category_id, Category.status.is_(True))
        .first()
    )


def _visible_top_creators(session):
    """Leaderboard rows whose creator and owning user are still active."""
    return (
        session.query(TopCreator)
        .join(Creator, Creator.creator_id == TopCreator.creator_id)
        .join(User, User.user_id == Creator.user_id)
        .filter(Creator.status.is_(True), User.status.is_(True))
    )


def list_category_top_creators(session, category_id, limit) -> List[TopCreator]:
    """Stored ranking for one category, best first."""
    return (
        _visible_top_creators(session)
        .filter(TopCreator.category_id == category_id)
        .order_by(TopCreator.rank_position)
        .limit(limit)
        .all()
    )


def list_all_top_creators(session, limit) -> List[TopCreator]:
    """Top `limit` ranks of every active category, by category name then rank."""
    return (
        _visible_top_creators(session)
        .join(Category, Category.category_id == TopCreator.category_id)
        .filter(Category.status.is_(True), TopCreator.rank_position <= limit)
        .order_by(Category.category_name, TopCreator.category_id, TopCreator.rank_position)
        .all()
    )


def count_top_creators(session) -> int:
    return session.query(func.count(TopCreator.top_creator_id)).scalar() or 0


def count_ranked_categories(session) -> int:
    return session.query(func.count(func.distinct(TopCreator.category_id))).scalar() or 0
