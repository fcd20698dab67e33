"""Tests for leaderboard.services.db -- read helpers behind the pipeline and API."""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from leaderboard.ranking.base import RankedCreator
from leaderboard.ranking.writer import replace_leaderboard
from leaderboard.services.db import (
    count_ranked_categories,
    count_top_creators,
    get_active_category,
    get_max_last_updated,
    list_active_categories,
    list_all_top_creators,
    list_category_top_creators,
)

NOW = datetime(2026, 3, 10, 2, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(db_session):
    """Writes a leaderboard for a category: store(category, ['id1', 'id2'])."""
    def _store(category, creator_ids, now=NOW):
        ranked = [
            RankedCreator(creator_id=cid, follower_count=0, avg_review_score=Decimal('0.00'),
                          collab_count=0, score=Decimal('0.5000'), rank_position=i)
            for i, cid in enumerate(creator_ids, 1)
        ]
        replace_leaderboard(db_session, category.category_id, ranked, now)
        db_session.commit()
    return _store


class TestCategories:

    def test_active_categories_by_name(self, db_session, make_category):
        make_category('Travel')
        make_category('Beauty')
        make_category('Archived', status=False)
        assert [c.category_name for c in list_active_categories(db_session)] == ['Beauty', 'Travel']

    def test_get_active_category(self, db_session, make_category):
        live = make_category('Live')
        dead = make_category('Dead', status=False)
        assert get_active_category(db_session, live.category_id).category_name == 'Live'
        assert get_active_category(db_session, dead.category_id) is None
        assert get_active_category(db_session, 'nope') is None


class TestLeaderboardReads:

    def test_empty_store(self, db_session):
        assert get_max_last_updated(db_session) is None
        assert count_top_creators(db_session) == 0
        assert count_ranked_categories(db_session) == 0
        assert list_all_top_creators(db_session, 5) == []

    def test_counts(self, db_session, make_category, make_creator, store):
        fitness, travel = make_category('Fitness'), make_category('Travel')
        store(fitness, [make_creator(fitness).creator_id, make_creator(fitness).creator_id])
        store(travel, [make_creator(travel).creator_id])
        assert count_top_creators(db_session) == 3
        assert count_ranked_categories(db_session) == 2

    def test_max_last_updated(self, db_session, make_category, make_creator, store):
        fitness, travel = make_category('Fitness'), make_category('Travel')
        store(fitness, [make_creator(fitness).creator_id])
        later = datetime(2026, 3, 11, 2, 0, tzinfo=timezone.utc)
        store(travel, [make_creator(travel).creator_id], now=later)
        assert get_max_last_updated(db_session).replace(tzinfo=None) == later.replace(tzinfo=None)

    def test_category_rows_ordered_and_limited(self, db_session, make_category, make_creator, store):
        category = make_category()
        ids = [make_creator(category, creator_id=f'c{i}').creator_id for i in range(4)]
        store(category, ids)
        rows = list_category_top_creators(db_session, category.category_id, 3)
        assert [r.creator_id for r in rows] == ['c0', 'c1', 'c2']

    def test_hides_inactive_user(self, db_session, make_category, make_creator, store):
        category = make_category()
        gone = make_creator(category, creator_id='gone')
        kept = make_creator(category, creator_id='kept')
        store(category, [gone.creator_id, kept.creator_id])
        gone.user.status = False
        db_session.commit()
        rows = list_category_top_creators(db_session, category.category_id, 5)
        assert [r.creator_id for r in rows] == ['kept']

    def test_all_rows_respect_rank_limit(self, db_session, make_category, make_creator, store):
        fitness, beauty = make_category('Fitness'), make_category('Beauty')
        store(fitness, [make_creator(fitness).creator_id for _ in range(3)])
        store(beauty, [make_creator(beauty).creator_id for _ in range(3)])
        rows = list_all_top_creators(db_session, 2)
        assert [(r.category.category_name, r.rank_position) for r in rows] == [
            ('Beauty', 1), ('Beauty', 2), ('Fitness', 1), ('Fitness', 2),
        ]
