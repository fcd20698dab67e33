"""
Builds the ranking object graph from config.

create_app() and the RQ worker entry point both call build_ranking(), so the
web process and the worker run the same pipeline against the same lock key.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from leaderboard.config import (
    FOLLOWER_RULE, RANKING_DEFAULT_LIMIT, RANKING_LOCK_TIMEOUT,
    RANKING_MAX_WORKERS, RANKING_STALE_HOURS, TOP_CREATORS_JOB,
)
from leaderboard.ranking.freshness import FreshnessGate
from leaderboard.ranking.guard import RunGuard
from leaderboard.ranking.job import TopCreatorJob
from leaderboard.ranking.metrics import MetricsReader
from leaderboard.ranking.processor import CategoryProcessor, utc_now
from leaderboard.ranking.scheduler import SchedulerService


@dataclass
class RankingServices:
    session_factory: Callable
    job: TopCreatorJob
    freshness: FreshnessGate
    scheduler: SchedulerService


def build_ranking(session_factory: Callable = None, redis_client=None,
                  clock: Callable[[], datetime] = utc_now,
                  max_workers: int = RANKING_MAX_WORKERS,
                  follower_rule: str = FOLLOWER_RULE) -> RankingServices:
    """Wire reader → processor → job → scheduler around one session factory and clock."""
    if session_factory is None:
        from leaderboard.database import get_session
        session_factory = get_session

    processor = CategoryProcessor(session_factory, MetricsReader(follower_rule), clock=clock)
    guard = RunGuard(TOP_CREATORS_JOB, redis_client, timeout=RANKING_LOCK_TIMEOUT)
    job = TopCreatorJob(session_factory, processor, guard, max_workers=max_workers)
    freshness = FreshnessGate(session_factory, clock=clock)
    scheduler = SchedulerService(job, freshness, limit=RANKING_DEFAULT_LIMIT,
                                 stale_hours=RANKING_STALE_HOURS, clock=clock)
    return RankingServices(session_factory=session_factory, job=job,
                           freshness=freshness, scheduler=scheduler)
