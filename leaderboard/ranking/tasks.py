"""
RQ entry point for asynchronous (admin-triggered) ranking runs.

Enqueued by POST /recommendations/top-creators/calculate?async=1 and executed
by an `rq worker ranking` process.
"""
import logging

logger = logging.getLogger('ranking.tasks')


def run_top_creators_job(limit):
    """Run the ranking job once in the worker and return the summary dict."""
    from leaderboard.database import register_models
    from leaderboard.extensions import redis_client
    from leaderboard.ranking.wiring import build_ranking

    register_models()
    services = build_ranking(redis_client=redis_client)
    result = services.job.calculate_top_creators(limit)
    logger.info("Async top creators calculation completed",
                extra={'context': result.to_dict()['stats']})
    return result.to_dict()


def enqueue_top_creators_job(limit):
    """Queue a run on the 'ranking' queue. Returns the RQ job."""
    from leaderboard.config import RANKING_LOCK_TIMEOUT
    from leaderboard.extensions import get_queue
    return get_queue().enqueue(run_top_creators_job, limit, job_timeout=RANKING_LOCK_TIMEOUT)
