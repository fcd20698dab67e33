"""
Database engine + session factory.

Defaults to SQLite for local dev, Postgres in production.
Every ranking unit of work opens its own session through get_session().
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from leaderboard.config import DATABASE_URL


class Base(DeclarativeBase):
    pass


# Heroku-style URLs use postgres:// but SQLAlchemy 2.x requires postgresql://
url = DATABASE_URL.replace('postgres://', 'postgresql://', 1)

if url.startswith('sqlite'):
    engine = create_engine(url, connect_args={'check_same_thread': False})
else:
    engine = create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10)

SessionLocal = sessionmaker(bind=engine)


def get_session():
    """Return a new DB session."""
    return SessionLocal()


def register_models():
    """Import every model module so Base.metadata knows about all tables.

    Schema is managed by Alembic; this only wires up the mappers.
    """
    import importlib
    importlib.import_module('leaderboard.models.user')
    importlib.import_module('leaderboard.models.category')
    importlib.import_module('leaderboard.models.creator')
    importlib.import_module('leaderboard.models.review')
    importlib.import_module('leaderboard.models.contract')
    importlib.import_module('leaderboard.models.top_creator')
