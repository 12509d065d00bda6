from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from mindclinic.models import Payment
from mindclinic.services import payment_service

payment_bp = Blueprint('payment', __name__, url_prefix='/api/payments')


@payment_bp.route('', methods=['GET'])
@jwt_required()
def list_payments():
    """
    Latest payments first.
    Query params:
        patient_id: Filter by patient ID (optional)
        limit: max rows (optional, default 50, max 500)
    """
    limit = request.args.get('limit', 50, type=int)
    if limit < 1 or limit > 500:
        limit = 50

    query = Payment.query
    patient_id = request.args.get('patient_id', type=str)
    if patient_id:
        query = query.filter(Payment.patient_id == patient_id)

    payments = query.order_by(Payment.date.desc()).limit(limit).all()
    return jsonify({
        'success': True,
        'data': [p.to_dict() for p in payments],
        'total': len(payments)
    }), 200


@payment_bp.route('', methods=['POST'])
@jwt_required()
def create_payment():
    """
    Record a payment.
    Body: amount, concept, patient_id (optional), appointment_id (optional;
    marks the appointment as paid)
    """
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    payment = payment_service.record_payment(
        data,
        appointment_id=data.get('appointment_id'),
        user_id=get_jwt_identity(),
    )
    return jsonify({
        'success': True,
        'data': payment.to_dict(),
        'message': 'Payment recorded'
    }), 201


@payment_bp.route('/<int:payment_id>', methods=['PUT'])
@jwt_required()
def update_payment(payment_id):
    data = request.get_json()
    if not data:
        return jsonify({'success': False, 'error': 'Request body must be JSON'}), 400

    payment = payment_service.update_payment(payment_id, data, user_id=get_jwt_identity())
    return jsonify({'success': True, 'data': payment.to_dict()}), 200


@payment_bp.route('/<int:payment_id>', methods=['DELETE'])
@jwt_required()
def delete_payment(payment_id):
    payment_service.delete_payment(payment_id, user_id=get_jwt_identity())
    return jsonify({'success': True, 'message': 'Payment deleted'}), 200
