"""
Recommendation routes — top-creator leaderboards, job status, admin trigger.

Reads go straight to the stored leaderboard; the only way these routes run
the pipeline is the explicit admin trigger.
"""
import logging
import uuid
from decimal import Decimal

from flask import Blueprint, current_app, jsonify, request

from leaderboard.config import ADMIN_API_TOKEN, API_MIN_LIMIT, API_MAX_LIMIT, RANKING_DEFAULT_LIMIT
from leaderboard.ranking.base import RunInProgressError, SCORE_QUANTUM
from leaderboard.services.db import (
    get_active_category, list_category_top_creators, list_all_top_creators,
    count_top_creators, count_ranked_categories,
)

logger = logging.getLogger('routes.recommendations')

bp = Blueprint('recommendations', __name__, url_prefix='/recommendations')

STALE_SUGGESTION = 'Top creators data may need to be updated'


def _ranking():
    return current_app.extensions['ranking']


# ── Validation ───────────────────────────────────────────────────────────────

def _parse_limit(errors):
    raw = request.args.get('limit')
    if raw is None or raw == '':
        return RANKING_DEFAULT_LIMIT
    try:
        limit = int(raw)
    except ValueError:
        limit = None
    if limit is None or not API_MIN_LIMIT <= limit <= API_MAX_LIMIT:
        errors.append({'param': 'limit',
                       'msg': f'Limit must be between {API_MIN_LIMIT} and {API_MAX_LIMIT}'})
        return None
    return limit


def _is_uuid(value):
    try:
        uuid.UUID(value)
        return True
    except (ValueError, TypeError):
        return False


def _require_admin():
    """Return an error response tuple, or None when the caller is an admin."""
    if not ADMIN_API_TOKEN:
        return None  # No token set: open access (local dev)
    if request.headers.get('X-Admin-Token') == ADMIN_API_TOKEN:
        return None
    logger.warning("Unauthorized attempt to access admin ranking endpoint %s", request.path)
    return jsonify({'message': 'Unauthorized. Admin access required.'}), 403


# ── Serialization ────────────────────────────────────────────────────────────

def _format_score(score):
    return str(Decimal(score).quantize(SCORE_QUANTUM))


def _iso(value):
    return value.isoformat() if value is not None else None


def _serialize_entry(row):
    creator = row.creator
    return {
        'rank': row.rank_position,
        'score': _format_score(row.score),
        'creator': {
            'creatorId': creator.creator_id,
            'firstName': creator.first_name,
            'lastName': creator.last_name,
            'nickName': creator.nick_name,
            'bio': creator.bio,
            'profilePicUrl': creator.profile_pic_url,
            'type': creator.type,
            'username': creator.user.username if creator.user else None,
        },
        'metrics': {
            'followerCount': row.follower_count,
            'avgReviewScore': float(row.avg_review_score),
            'collabCount': row.collab_count,
        },
        'lastUpdated': _iso(row.last_updated),
    }


def _category_dict(category):
    return {'categoryId': category.category_id, 'categoryName': category.category_name}


def _not_found_with_suggestion(message):
    should_update = _ranking().freshness.should_update(1)
    return jsonify({
        'message': message,
        'suggestion': STALE_SUGGESTION if should_update else None,
    }), 404


# ── Leaderboard reads ────────────────────────────────────────────────────────

@bp.route('/top-creators/category/<category_id>')
def top_creators_by_category(category_id):
    """Stored ranking for one active category."""
    errors = []
    if not _is_uuid(category_id):
        errors.append({'param': 'categoryId', 'msg': 'Category ID must be a valid UUID'})
    limit = _parse_limit(errors)
    if errors:
        logger.error("Validation errors during get top creators by category",
                     extra={'context': {'errors': errors, 'categoryId': category_id}})
        return jsonify({'errors': errors}), 400

    session = _ranking().session_factory()
    try:
        category = get_active_category(session, category_id)
        if not category:
            logger.warning("Get top creators failed: category %s not found or inactive", category_id)
            return jsonify({'message': 'Category not found or inactive'}), 404

        rows = list_category_top_creators(session, category_id, limit)
        if not rows:
            logger.info("No top creators found for category %s", category_id)
            return _not_found_with_suggestion('No top creators found for this category')

        entries = []
        for row in rows:
            entry = _serialize_entry(row)
            entry['category'] = _category_dict(row.category)
            entries.append(entry)

        return jsonify({
            'message': 'Top creators retrieved successfully',
            'category': _category_dict(category),
            'topCreators': entries,
            'meta': {
                'count': len(entries),
                'limit': limit,
                'lastUpdated': _iso(rows[0].last_updated),
            },
        })
    except Exception as e:
        logger.error("Error during getting top creators by category %s", category_id, exc_info=True)
        return jsonify({
            'message': 'Internal server error during getting top creators by category',
            'error': str(e),
        }), 500
    finally:
        session.close()


@bp.route('/top-creators')
def all_top_creators():
    """Top `limit` of every active category, grouped by category."""
    errors = []
    limit = _parse_limit(errors)
    if errors:
        return jsonify({'errors': errors}), 400

    session = _ranking().session_factory()
    try:
        rows = list_all_top_creators(session, limit)
        if not rows:
            logger.info("No top creators found")
            return _not_found_with_suggestion('No top creators found')

        grouped = {}
        for row in rows:
            group = grouped.setdefault(row.category_id, {
                'category': _category_dict(row.category),
                'creators': [],
            })
            group['creators'].append(_serialize_entry(row))

        data = list(grouped.values())
        return jsonify({
            'message': 'All top creators retrieved successfully',
            'data': data,
            'meta': {
                'categoriesCount': len(data),
                'totalCreators': len(rows),
                'limit': limit,
                'lastUpdated': _iso(rows[0].last_updated),
            },
        })
    except Exception as e:
        logger.error("Error during getting all top creators", exc_info=True)
        return jsonify({
            'message': 'Internal server error during getting all top creators',
            'error': str(e),
        }), 500
    finally:
        session.close()


# ── Job control ──────────────────────────────────────────────────────────────

@bp.route('/top-creators/calculate', methods=['POST'])
def calculate_top_creators():
    """Admin: run the ranking job now (synchronously, or queued with ?async=1)."""
    denied = _require_admin()
    if denied:
        return denied

    errors = []
    limit = _parse_limit(errors)
    if errors:
        return jsonify({'errors': errors}), 400

    logger.info("Manual top creators calculation triggered", extra={'context': {
        'remote_addr': request.remote_addr, 'limit': limit,
    }})

    if request.args.get('async') in ('1', 'true'):
        try:
            from leaderboard.ranking.tasks import enqueue_top_creators_job
            rq_job = enqueue_top_creators_job(limit)
            return jsonify({'message': 'Top creators calculation queued', 'jobId': rq_job.id}), 202
        except Exception as e:
            logger.error("Failed to enqueue top creators calculation", exc_info=True)
            return jsonify({
                'message': 'Internal server error during top creators calculation',
                'error': str(e),
            }), 500

    try:
        result = _ranking().scheduler.run_now(limit)
        return jsonify({
            'message': 'Top creators calculation completed successfully',
            'result': result.to_dict(),
        })
    except RunInProgressError as e:
        return jsonify({'message': str(e)}), 409
    except Exception as e:
        logger.error("Error during manual top creators calculation", exc_info=True)
        return jsonify({
            'message': 'Internal server error during top creators calculation',
            'error': str(e),
        }), 500


@bp.route('/top-creators/status')
def top_creators_status():
    """Freshness and size of the stored leaderboard."""
    ranking = _ranking()
    session = ranking.session_factory()
    try:
        last_update = ranking.freshness.get_last_update_time()
        should_update = ranking.freshness.should_update()
        total = count_top_creators(session)
        categories = count_ranked_categories(session)
        return jsonify({
            'message': 'Top creators job status retrieved successfully',
            'status': {
                'lastUpdate': _iso(last_update),
                'shouldUpdate': should_update,
                'nextUpdateDue': 'Now' if should_update else 'Within 24 hours',
                'totalTopCreators': total,
                'categoriesCount': categories,
                'isHealthy': total > 0,
                'isRunning': ranking.job.is_running,
            },
        })
    except Exception as e:
        logger.error("Error getting top creators job status", exc_info=True)
        return jsonify({
            'message': 'Internal server error getting job status',
            'error': str(e),
        }), 500
    finally:
        session.close()


@bp.route('/top-creators/jobs')
def scheduler_jobs():
    """Admin: state of every scheduled job."""
    denied = _require_admin()
    if denied:
        return denied
    return jsonify({'jobs': _ranking().scheduler.status()})
