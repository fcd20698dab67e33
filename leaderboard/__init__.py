"""
Flask application factory.

Creates and configures the Flask app, registers blueprints, and wires the
ranking pipeline (job, freshness gate, scheduler) into app.extensions.
"""
import atexit
import logging
import threading

from flask import Flask

logger = logging.getLogger('leaderboard')


def create_app(ranking=None, start_scheduler=None):
    """
    Create and configure the Flask application.

    Args:
        ranking:          Pre-built RankingServices (tests inject one bound to
                          an in-memory database). Built from config if None.
        start_scheduler:  Run the startup freshness check and start the daily
                          job. Defaults to the SCHEDULER_ENABLED env var.
    """
    from leaderboard.config import SCHEDULER_ENABLED
    from leaderboard.database import register_models
    from leaderboard.logging_config import configure_logging

    app = Flask(__name__)

    configure_logging(app)

    # Schema is managed by Alembic; this only registers the mappers.
    register_models()

    if ranking is None:
        from leaderboard.extensions import redis_client
        from leaderboard.ranking.wiring import build_ranking
        ranking = build_ranking(redis_client=redis_client)
    app.extensions['ranking'] = ranking

    # Register blueprints
    from leaderboard.routes.health import bp as health_bp
    from leaderboard.routes.recommendations import bp as recommendations_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(recommendations_bp)

    if start_scheduler is None:
        start_scheduler = SCHEDULER_ENABLED
    if start_scheduler:
        # Startup check may run the full job; keep it off the boot path
        threading.Thread(target=ranking.scheduler.initialize,
                         name='scheduler-init', daemon=True).start()
        atexit.register(ranking.scheduler.shutdown)
        logger.info("Ranking scheduler enabled")

    return app
