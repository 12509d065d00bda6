from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from mindclinic.services import billing_service

billing_bp = Blueprint('billing', __name__, url_prefix='/api/billing')


@billing_bp.route('/requests', methods=['POST'])
@jwt_required()
def create_billing_request():
    """
    Request an invoice for one or more appointments of a patient.
    Body: patient_id, appointment_ids
    """
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    appointment_ids = data.get('appointment_ids') or []
    if not isinstance(appointment_ids, list):
        return jsonify({'success': False, 'error': 'appointment_ids must be a list'}), 400

    billing_request = billing_service.request_batch_invoice(
        appointment_ids,
        data.get('patient_id'),
        requested_by=get_jwt_identity(),
    )
    return jsonify({
        'success': True,
        'data': {'request_id': billing_request.id, 'status': billing_request.status},
        'message': 'Invoice requested'
    }), 202


@billing_bp.route('/requests/<int:request_id>', methods=['GET'])
@jwt_required()
def billing_status(request_id):
    return jsonify({'success': True, 'data': billing_service.get_billing_status(request_id)}), 200


@billing_bp.route('/requests/<int:request_id>/complete', methods=['POST'])
@jwt_required()
def complete_billing_request(request_id):
    """
    Callback for the invoicing workflow.
    Body: invoice_url and invoice_number, or error
    """
    data = request.get_json(silent=True) or {}
    billing_request = billing_service.complete_billing_request(
        request_id,
        invoice_url=data.get('invoice_url'),
        invoice_number=data.get('invoice_number'),
        error=data.get('error'),
    )
    return jsonify({'success': True, 'data': billing_request.to_dict()}), 200
