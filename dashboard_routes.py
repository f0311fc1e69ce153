"""
Dashboard Routes Blueprint for Tidelog.

Registers the API routes for:
- Dashboard analytics (full, summary, advanced)
- Lure catch breakdown
- Fishing log create / read / replace / delete
"""

from datetime import datetime

from flask import Blueprint, jsonify, request, session
import logging

from auth import feature_required, login_required
from config import Config

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint('dashboard_bp', __name__)


# ====================================================================
# Helper
# ====================================================================

def _user_id():
    """Return the current user id, defaulting to 1 for demo mode."""
    return session.get('user_id', 1)


def _now():
    return datetime.now()


# ====================================================================
# DASHBOARD ANALYTICS
# ====================================================================

@dashboard_bp.route('/api/dashboard', methods=['GET'])
@login_required
def get_dashboard():
    user_id = _user_id()
    range_key = request.args.get('range') or 'month'
    try:
        from fishing_store import load_trips
        from dashboard import build_dashboard
        now = _now()
        trips = load_trips(user_id)
        result = build_dashboard(
            trips, range_key, today=now.date(), now=now,
            recent_limit=Config.DASHBOARD_RECENT_TRIPS,
            top_n=Config.DASHBOARD_TOP_N,
            lure_bar_limit=Config.DASHBOARD_LURE_BAR_LIMIT,
        )
        return jsonify(result)
    except Exception as e:
        logger.error(f"Error building dashboard for user {user_id}: {e}", exc_info=True)
        return jsonify({'error': 'Internal Server Error'}), 500


@dashboard_bp.route('/api/dashboard/summary', methods=['GET'])
@login_required
def get_dashboard_summary():
    user_id = _user_id()
    try:
        from fishing_store import load_trips
        from dashboard import build_summary
        trips = load_trips(user_id)
        result = build_summary(
            trips, today=_now().date(),
            recent_limit=Config.DASHBOARD_RECENT_TRIPS,
            top_n=Config.DASHBOARD_TOP_N,
        )
        return jsonify(result)
    except Exception as e:
        logger.error(f"Error building dashboard summary for user {user_id}: {e}", exc_info=True)
        return jsonify({'error': 'Internal Server Error'}), 500


@dashboard_bp.route('/api/dashboard/advanced', methods=['GET'])
@feature_required('dashboard.advanced')
def get_dashboard_advanced():
    user_id = _user_id()
    range_key = request.args.get('range') or 'month'
    try:
        from fishing_store import load_trips
        from dashboard import build_advanced
        trips = load_trips(user_id)
        return jsonify(build_advanced(trips, range_key, today=_now().date()))
    except Exception as e:
        logger.error(f"Error building advanced dashboard for user {user_id}: {e}", exc_info=True)
        return jsonify({'error': 'Internal Server Error'}), 500


@dashboard_bp.route('/api/lures/<lure_id>/breakdown', methods=['GET'])
@feature_required('lures.breakdown')
def get_lure_breakdown(lure_id):
    user_id = _user_id()
    try:
        from fishing_store import load_lure_trips
        from dashboard import build_lure_breakdown
        trips = load_lure_trips(user_id, lure_id)
        return jsonify(build_lure_breakdown(trips, lure_id))
    except Exception as e:
        logger.error(f"Error building breakdown for lure {lure_id}: {e}", exc_info=True)
        return jsonify({'error': 'Internal Server Error'}), 500


# ====================================================================
# FISHING LOGS
# ====================================================================

@dashboard_bp.route('/api/fishing-logs', methods=['GET'])
@login_required
def list_fishing_logs():
    user_id = _user_id()
    try:
        from fishing_store import get_trips
        logs = get_trips(
            user_id,
            date_from=request.args.get('dateFrom'),
            date_to=request.args.get('dateTo'),
        )
        return jsonify(logs)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Error listing fishing logs: {e}")
        return jsonify({'error': str(e)}), 500


@dashboard_bp.route('/api/fishing-logs', methods=['POST'])
@login_required
def create_fishing_log():
    user_id = _user_id()
    data = request.get_json(silent=True) or {}
    try:
        from fishing_store import create_trip
        log = create_trip(user_id, data)
        return jsonify(log), 201
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Error creating fishing log: {e}")
        return jsonify({'error': str(e)}), 500


@dashboard_bp.route('/api/fishing-logs/<int:log_id>', methods=['GET'])
@login_required
def get_fishing_log(log_id):
    user_id = _user_id()
    try:
        from fishing_store import get_trip
        log = get_trip(log_id, user_id)
        if log is None:
            return jsonify({'error': 'Fishing log not found'}), 404
        return jsonify(log)
    except Exception as e:
        logger.error(f"Error getting fishing log {log_id}: {e}")
        return jsonify({'error': str(e)}), 500


@dashboard_bp.route('/api/fishing-logs/<int:log_id>', methods=['PUT'])
@login_required
def replace_fishing_log(log_id):
    user_id = _user_id()
    data = request.get_json(silent=True) or {}
    try:
        from fishing_store import replace_trip
        log = replace_trip(log_id, user_id, data)
        if log is None:
            return jsonify({'error': 'Fishing log not found'}), 404
        return jsonify(log)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.error(f"Error replacing fishing log {log_id}: {e}")
        return jsonify({'error': str(e)}), 500


@dashboard_bp.route('/api/fishing-logs/<int:log_id>', methods=['DELETE'])
@login_required
def delete_fishing_log(log_id):
    user_id = _user_id()
    try:
        from fishing_store import delete_trip
        result = delete_trip(log_id, user_id)
        if not result['success']:
            return jsonify({'error': 'Fishing log not found'}), 404
        return jsonify(result)
    except Exception as e:
        logger.error(f"Error deleting fishing log {log_id}: {e}")
        return jsonify({'error': str(e)}), 500
