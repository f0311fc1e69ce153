"""
Authentication helpers for Tidelog.
Route protection and plan-based feature gating.

Sign-up and login live in the account service; this module only reads the
session it established and the user's plan.
"""

import logging
from functools import wraps
from flask import session, jsonify
from db import get_db

logger = logging.getLogger(__name__)

PLAN_FORBIDDEN_CODE = 'PLAN_FORBIDDEN'

# Features unlocked per plan. Gate on feature keys, never on plan names.
PLAN_FEATURES = {
    'free': (),
    'pro': ('dashboard.advanced', 'lures.breakdown', 'ai.recommend'),
}


def init_auth_tables():
    """Create the users table holding each account's plan."""
    with get_db() as conn:
        conn.execute('''
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT UNIQUE,
                name TEXT,
                plan TEXT NOT NULL DEFAULT 'free',
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        ''')


def has_feature(plan, feature_key):
    """Check whether a plan includes a feature."""
    return feature_key in PLAN_FEATURES.get(plan, ())


def get_user_plan(user_id):
    """Return the user's plan name, 'free' when unknown."""
    with get_db() as conn:
        row = conn.execute('SELECT plan FROM users WHERE id = ?', (user_id,)).fetchone()
    if row and row['plan'] in PLAN_FEATURES:
        return row['plan']
    return 'free'


# ---------------------------------------------------------------------------
# Route protection
# ---------------------------------------------------------------------------

def login_required(f):
    """Decorator for API routes that require authentication.
    - Anonymous requests get a 401 JSON response
    - Bypassed when DEMO_MODE is enabled
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not session.get('user_id'):
            from config import Config
            if Config.DEMO_MODE:
                session['user_id'] = 1
                return f(*args, **kwargs)
            return jsonify({'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def feature_required(feature_key):
    """Decorator for routes gated behind a paid feature.
    Anonymous requests get 401; users whose plan lacks the feature get 403
    with a PLAN_FORBIDDEN body. In demo mode every feature is unlocked."""
    def decorator(f):
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            from config import Config
            if Config.DEMO_MODE:
                return f(*args, **kwargs)
            plan = get_user_plan(session['user_id'])
            if not has_feature(plan, feature_key):
                logger.info(f"User {session['user_id']} on plan '{plan}' denied {feature_key}")
                return jsonify({
                    'code': PLAN_FORBIDDEN_CODE,
                    'featureKey': feature_key,
                    'message': f'Plan forbidden: requires {feature_key}',
                }), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator
