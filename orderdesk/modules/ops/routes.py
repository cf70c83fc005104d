"""
Ops Routes
==========

Public health endpoint.
"""

import logging
from datetime import datetime, timedelta

from flask import jsonify

from . import ops_health_bp
from orderdesk.core import Database, get_db_path

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------

def _check_database():
    """Can we open the orders database and read from it?"""
    try:
        with Database.connect(get_db_path()) as conn:
            orders = conn.execute("SELECT COUNT(*) FROM orders").fetchone()[0]
        return {'ok': True, 'orders': orders}
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        return {'ok': False, 'error': str(e)}


def _check_ai():
    from orderdesk.modules.ai import ai_service

    providers = ai_service.available_providers()
    return {
        'ok': True,
        'configured': ai_service.is_configured,
        'provider': providers[0] if providers else None,
        'fallback': 'template',
    }


def _get_error_count_last_hour():
    """ERROR / CRITICAL rows in app_logs over the last hour"""
    try:
        cutoff = (datetime.now() - timedelta(hours=1)).isoformat()
        with Database.connect(get_db_path()) as conn:
            return conn.execute("""
                SELECT COUNT(*) FROM app_logs
                WHERE level IN ('ERROR', 'CRITICAL')
                AND timestamp > ?
            """, (cutoff,)).fetchone()[0]
    except Exception:
        return 0


def _build_health_response():
    """Build the health check response dict."""
    database = _check_database()
    ai = _check_ai()

    issues = []
    status = 'ok'
    if not database['ok']:
        issues.append({'type': 'database', 'message': 'Orders database unavailable'})
        status = 'critical'
    if not ai['configured']:
        issues.append({'type': 'ai_fallback', 'message': 'No AI provider configured, using templates'})

    result = {
        'status': status,
        'timestamp': datetime.now().isoformat(),
        'checks': {
            'database': database,
            'ai': ai,
        },
        'issues': issues,
        'error_count_1h': _get_error_count_last_hour() if database['ok'] else 0,
    }
    return result, status


# ---------------------------------------------------------------------------
# Public routes (ops_health_bp, no auth)
# ---------------------------------------------------------------------------

@ops_health_bp.route('/')
@ops_health_bp.route('')
def health_check():
    """Public health endpoint for uptime monitors."""
    data, status = _build_health_response()
    code = 503 if status == 'critical' else 200
    return jsonify(data), code
