from flask import Blueprint, jsonify
from sqlalchemy import text
from factdesk import feature_flags
from factdesk.extensions import db

health_bp = Blueprint('health', __name__)


@health_bp.route('/health')
def health():
    return jsonify({'status': 'ok'})


@health_bp.route('/ready')
def ready():
    try:
        db.session.execute(text('SELECT 1'))
        db_ok = True
    except Exception:
        db.session.rollback()
        db_ok = False

    status = 'ready' if db_ok else 'not_ready'
    code = 200 if db_ok else 503
    return jsonify({
        'status': status,
        'db': db_ok,
        'ai_suggestions': feature_flags.is_enabled('ai_suggestions'),
    }), code
