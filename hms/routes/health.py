"""
Health endpoints for load balancers and container health checks
"""
from datetime import datetime

from flask import Blueprint, jsonify, current_app

from hms.extensions import db

health_bp = Blueprint('health', __name__, url_prefix='/health')


def _now():
    return datetime.utcnow().isoformat()


def _database_status():
    try:
        db.session.execute(db.text('SELECT 1'))
        return 'connected'
    except Exception as e:
        db.session.rollback()
        current_app.logger.error("Readiness check failed: %s", e)
        return f'error: {e}'


@health_bp.route('', methods=['GET'])
@health_bp.route('/ping', methods=['GET'])
def health_check():
    """Process is up; touches nothing else"""
    return jsonify({
        'status': 'healthy',
        'service': 'hospital-backend',
        'timestamp': _now()
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """
    Ready to take bookings: the database answers.
    WhatsApp is reported but never fails readiness; bookings succeed without it.
    """
    database = _database_status()
    cfg = current_app.config
    ready = database == 'connected'
    return jsonify({
        'status': 'ready' if ready else 'not_ready',
        'database': database,
        'notifications': {
            'whatsapp_configured': bool(cfg.get('WHATSAPP_PHONE_NUMBER_ID') and cfg.get('WHATSAPP_ACCESS_TOKEN')),
            'mode': 'celery' if cfg.get('NOTIFICATIONS_ASYNC') else 'inline',
        },
        'timestamp': _now()
    }), 200 if ready else 503


@health_bp.route('/live', methods=['GET'])
def liveness_check():
    return jsonify({'status': 'alive', 'timestamp': _now()}), 200
