from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from mindclinic.services import appointment_service
from mindclinic.services.clock import get_now
from mindclinic.utils.balance_calculator import pending_debts

appointment_bp = Blueprint('appointment', __name__, url_prefix='/api/appointments')


@appointment_bp.route('', methods=['GET'])
@jwt_required()
def list_appointments():
    """
    List appointments ordered by date and time.
    Query params:
        start, end: YYYY-MM-DD, inclusive (optional)
        patient_id: Filter by patient ID (optional)
        professional: Filter by professional name (optional)
    """
    appointments = appointment_service.list_appointments(
        start=request.args.get('start', type=str),
        end=request.args.get('end', type=str),
        patient_id=request.args.get('patient_id', type=str),
        professional=request.args.get('professional', type=str),
    )
    return jsonify({
        'success': True,
        'data': [a.to_dict() for a in appointments],
        'total': len(appointments)
    }), 200


@appointment_bp.route('/overdue', methods=['GET'])
@jwt_required()
def list_overdue():
    """
    Unpaid appointments whose session ended more than an hour ago.
    Query params:
        limit: max rows (optional)
        professional: Filter by professional name (optional)
    """
    limit = request.args.get('limit', type=int)
    appointments = appointment_service.list_appointments(
        professional=request.args.get('professional', type=str),
    )
    now = get_now()
    debts = pending_debts(appointments, now, limit=limit)
    return jsonify({
        'success': True,
        'data': [a.to_dict() for a in debts],
        'total_debt': sum(a.price or 0 for a in pending_debts(appointments, now)),
    }), 200


@appointment_bp.route('/<int:appointment_id>', methods=['GET'])
@jwt_required()
def get_appointment(appointment_id):
    appointment = appointment_service.get_appointment(appointment_id)
    return jsonify({'success': True, 'data': appointment.to_dict()}), 200


@appointment_bp.route('', methods=['POST'])
@jwt_required()
def create_appointment():
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    appointment = appointment_service.create_appointment(data, user_id=get_jwt_identity())
    return jsonify({
        'success': True,
        'data': appointment.to_dict(),
        'message': 'Appointment created successfully'
    }), 201


@appointment_bp.route('/recurring', methods=['POST'])
@jwt_required()
def create_recurring():
    """
    Create a recurring series.
    Body: appointment fields plus frequency (WEEKLY, BIWEEKLY, MONTHLY) and count
    """
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    appointments = appointment_service.create_recurring_series(
        data,
        frequency=data.get('frequency', 'WEEKLY'),
        count=data.get('count', 1),
        user_id=get_jwt_identity(),
    )
    return jsonify({
        'success': True,
        'data': [a.to_dict() for a in appointments],
        'recurrence_id': appointments[0].recurrence_id,
        'message': f'{len(appointments)} appointments created'
    }), 201


@appointment_bp.route('/<int:appointment_id>', methods=['PUT'])
@jwt_required()
def update_appointment(appointment_id):
    data = request.get_json()
    if not data:
        return jsonify({'success': False, 'error': 'Request body must be JSON'}), 400

    appointment = appointment_service.update_appointment(appointment_id, data)
    return jsonify({'success': True, 'data': appointment.to_dict()}), 200


@appointment_bp.route('/<int:appointment_id>', methods=['DELETE'])
@jwt_required()
def delete_appointment(appointment_id):
    appointment_service.delete_appointment(appointment_id, user_id=get_jwt_identity())
    return jsonify({'success': True, 'message': 'Appointment deleted'}), 200


@appointment_bp.route('/series/<recurrence_id>', methods=['DELETE'])
@jwt_required()
def delete_series(recurrence_id):
    """
    Delete a recurring series.
    Query params:
        from_date: YYYY-MM-DD; only appointments on or after it are deleted (optional)
    """
    deleted = appointment_service.delete_series(
        recurrence_id,
        from_date=request.args.get('from_date', type=str),
        user_id=get_jwt_identity(),
    )
    return jsonify({'success': True, 'deleted': deleted}), 200
