"""
Health routes — liveness plus a database ping for load balancers.
"""
import logging

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

logger = logging.getLogger('routes.health')

bp = Blueprint('health', __name__)


@bp.route('/health')
def health_check():
    """Liveness: the process is up and serving."""
    return jsonify({"status": "healthy"}), 200


@bp.route('/health/ready')
def readiness_check():
    """Readiness: the database answers a trivial query."""
    session = current_app.extensions['ranking'].session_factory()
    try:
        session.execute(text('SELECT 1'))
        return jsonify({"status": "ready", "database": "ok"}), 200
    except Exception as e:
        logger.error("Readiness check failed: %s", e)
        return jsonify({"status": "unavailable", "database": str(e)}), 503
    finally:
        session.close()
