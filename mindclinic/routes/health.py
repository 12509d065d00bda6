"""
Probes for the load balancer and the container runtime
"""
from datetime import datetime

from flask import Blueprint, current_app, jsonify
from mindclinic.extensions import db
from mindclinic.models import BillingRequest

health_bp = Blueprint('health', __name__, url_prefix='/health')


def _timestamp():
    return datetime.utcnow().isoformat()


@health_bp.route('', methods=['GET'])
@health_bp.route('/ping', methods=['GET'])
def health_check():
    """Process is up; touches nothing else"""
    return jsonify({'status': 'healthy', 'service': 'mindclinic', 'timestamp': _timestamp()}), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """
    Ready when the database answers. Also reports the invoice queue backlog
    and whether the invoicing webhook is configured; neither blocks readiness.
    """
    try:
        db.session.execute(db.text('SELECT 1'))
        backlog = BillingRequest.query.filter(BillingRequest.status.in_(('pending', 'error_sending'))).count()
    except Exception as e:
        db.session.rollback()
        return jsonify({'status': 'not_ready', 'database': f'error: {e}', 'timestamp': _timestamp()}), 503

    return jsonify({
        'status': 'ready',
        'database': 'connected',
        'invoice_webhook': 'configured' if current_app.config.get('BILLING_WEBHOOK_URL') else 'missing',
        'invoice_backlog': backlog,
        'timestamp': _timestamp(),
    }), 200


@health_bp.route('/live', methods=['GET'])
def liveness_check():
    return jsonify({'status': 'alive', 'timestamp': _timestamp()}), 200
