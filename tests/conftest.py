"""Shared test fixtures."""
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from leaderboard.database import Base, register_models

register_models()

from leaderboard.models.category import Category  # noqa: E402
from leaderboard.models.contract import Contract  # noqa: E402
from leaderboard.models.creator import Creator  # noqa: E402
from leaderboard.models.review import Review  # noqa: E402
from leaderboard.models.top_creator import TopCreator  # noqa: E402
from leaderboard.models.user import User  # noqa: E402


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now=None):
        self.now = now or datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created.

    StaticPool keeps every session on one connection, so the in-memory
    database is shared by the sessions the code under test opens itself.
    """
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory handed to the pipeline in place of get_session."""
    return sessionmaker(bind=db_engine)


@pytest.fixture
def db_session(session_factory):
    """Session for seeding and assertions. Seed helpers commit."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_redis():
    """Mock Redis client whose lock() always acquires and whose lock key is free."""
    mock = MagicMock()
    mock.lock.return_value.acquire.return_value = True
    mock.exists.return_value = 0
    return mock


# ── Seed factories ───────────────────────────────────────────────────────────

@pytest.fixture
def make_category(db_session):
    """Factory fixture — inserts and commits a Category."""
    def _make(name='Fitness', status=True, category_id=None):
        category = Category(category_id=category_id or str(uuid.uuid4()),
                            category_name=name, status=status)
        db_session.add(category)
        db_session.commit()
        return category
    return _make


@pytest.fixture
def make_creator(db_session):
    """Factory fixture — inserts a User plus a Creator with one social entry."""
    def _make(category, creator_id=None, followers=0, social_media=None,
              status=True, user_status=True, **overrides):
        creator_id = creator_id or str(uuid.uuid4())
        user = User(user_id=f'user-{creator_id}', username=f'handle-{creator_id}',
                    status=user_status)
        if social_media is None:
            social_media = [{'platform': 'instagram', 'followers': followers}]
        fields = dict(
            creator_id=creator_id,
            user_id=user.user_id,
            category_id=category.category_id if category is not None else None,
            first_name='Test',
            last_name=creator_id,
            nick_name=None,
            type='Content Creator',
            social_media=social_media,
            status=status,
        )
        fields.update(overrides)
        creator = Creator(**fields)
        db_session.add_all([user, creator])
        db_session.commit()
        return creator
    return _make


@pytest.fixture
def add_reviews(db_session):
    """Factory fixture — one Review per rating."""
    def _add(creator, *ratings):
        for rating in ratings:
            db_session.add(Review(review_id=str(uuid.uuid4()), campaign_id='campaign-1',
                                  creator_id=creator.creator_id, rating=rating))
        db_session.commit()
    return _add


@pytest.fixture
def add_contracts(db_session):
    """Factory fixture — `count` contracts in the given status."""
    def _add(creator, count=1, contract_status='Completed'):
        for _ in range(count):
            db_session.add(Contract(contract_id=str(uuid.uuid4()), campaign_id='campaign-1',
                                    brand_id='brand-1', creator_id=creator.creator_id,
                                    contract_status=contract_status))
        db_session.commit()
    return _add


@pytest.fixture
def scenario_category(make_category, make_creator, add_reviews, add_contracts):
    """Category with A(1000 followers, 4.0 avg, 2 collabs) and B(500, 5.0, 0)."""
    category = make_category('Fitness')
    a = make_creator(category, creator_id='creator-a', followers=1000)
    b = make_creator(category, creator_id='creator-b', followers=500)
    add_reviews(a, 4, 4)
    add_reviews(b, 5)
    add_contracts(a, 2)
    return category


@pytest.fixture
def stored_rows(db_session):
    """Returns a category's stored leaderboard, best first, read fresh."""
    def _rows(category_id):
        db_session.expire_all()
        return (
            db_session.query(TopCreator)
            .filter(TopCreator.category_id == category_id)
            .order_by(TopCreator.rank_position)
            .all()
        )
    return _rows


# ── App ──────────────────────────────────────────────────────────────────────

@pytest.fixture
def ranking(session_factory, clock):
    """RankingServices bound to the in-memory database and the fake clock."""
    from leaderboard.ranking.wiring import build_ranking
    return build_ranking(session_factory=session_factory, redis_client=None,
                         clock=clock, max_workers=1)


@pytest.fixture
def app(ranking):
    """Flask test app."""
    from leaderboard import create_app
    app = create_app(ranking=ranking, start_scheduler=False)
    app.config['TESTING'] = True
    yield app
    ranking.scheduler.shutdown()


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c
