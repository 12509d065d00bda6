from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from mindclinic.models import Patient
from mindclinic.models.patient import PATIENT_SOURCE_PRIVATE, PATIENT_SOURCE_PSIQUE
from mindclinic.extensions import db
from mindclinic.services.clock import get_now
from mindclinic.services.payment_service import get_patient_balance
from mindclinic.utils.audit import log_audit
from mindclinic.utils.dates import calculate_age, is_date_str

patient_bp = Blueprint('patient', __name__, url_prefix='/api/patients')

PATIENT_FIELDS = (
    'name', 'first_name', 'last_name', 'email', 'phone', 'dni', 'birth_date', 'fee',
    'modality', 'professional', 'patient_source', 'is_active', 'discharge_date',
    'discharge_reason', 'guardian_name', 'guardian_phone', 'guardian_relationship',
)


def _patient_to_dict(patient):
    """Patient payload with derived age"""
    data = patient.to_dict()
    age = calculate_age(patient.birth_date, get_now())
    data['age'] = age
    data['is_minor'] = age is not None and age < 18
    return data


def _validate_patient_data(data):
    """Returns an error message or None"""
    if data.get('patient_source') not in (None, PATIENT_SOURCE_PSIQUE, PATIENT_SOURCE_PRIVATE):
        return 'Invalid patient_source. Use "psique" or "private"'
    for field in ('birth_date', 'discharge_date'):
        if data.get(field) and not is_date_str(data[field]):
            return f'Invalid {field} format. Use YYYY-MM-DD'
    if data.get('fee') is not None:
        try:
            if float(data['fee']) < 0:
                return 'Fee cannot be negative'
        except (TypeError, ValueError):
            return 'Fee must be a number'
    return None


def _display_name(data):
    if data.get('name'):
        return data['name']
    return ' '.join(part for part in (data.get('first_name'), data.get('last_name')) if part)


@patient_bp.route('', methods=['GET'])
@jwt_required()
def list_patients():
    """
    List patients
    Query params:
        active: 'true' / 'false' (optional)
        professional: Filter by professional (optional)
        source: psique / private (optional)
    """
    query = Patient.query

    active = request.args.get('active', type=str)
    if active is not None:
        query = query.filter(Patient.is_active == (active.lower() == 'true'))

    professional = request.args.get('professional', type=str)
    if professional:
        query = query.filter(Patient.professional == professional)

    source = request.args.get('source', type=str)
    if source:
        query = query.filter(Patient.patient_source == source)

    patients = query.order_by(Patient.name.asc()).all()
    return jsonify({
        'success': True,
        'data': [_patient_to_dict(p) for p in patients],
        'total': len(patients)
    }), 200


@patient_bp.route('/<patient_id>', methods=['GET'])
@jwt_required()
def get_patient(patient_id):
    patient = db.session.get(Patient, patient_id)
    if not patient:
        return jsonify({'success': False, 'error': 'Patient not found'}), 404
    return jsonify({'success': True, 'data': _patient_to_dict(patient)}), 200


@patient_bp.route('', methods=['POST'])
@jwt_required()
def create_patient():
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    name = _display_name(data)
    if not name:
        return jsonify({
            'success': False,
            'error': 'Field "name" is required'
        }), 400

    error = _validate_patient_data(data)
    if error:
        return jsonify({'success': False, 'error': error}), 400

    patient = Patient(
        name=name,
        patient_source=data.get('patient_source') or PATIENT_SOURCE_PRIVATE,
        is_active=data.get('is_active', True),
    )
    for field in PATIENT_FIELDS:
        if field in data and field not in ('name', 'patient_source', 'is_active'):
            setattr(patient, field, data[field])

    try:
        db.session.add(patient)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        return jsonify({
            'success': False,
            'error': f'Failed to create patient: {str(e)}'
        }), 500

    log_audit('patient', 'create', user_id=get_jwt_identity(), entity_id=patient.id)
    return jsonify({
        'success': True,
        'data': _patient_to_dict(patient),
        'message': 'Patient created successfully'
    }), 201


@patient_bp.route('/<patient_id>', methods=['PUT'])
@jwt_required()
def update_patient(patient_id):
    patient = db.session.get(Patient, patient_id)
    if not patient:
        return jsonify({'success': False, 'error': 'Patient not found'}), 404

    data = request.get_json()
    if not data:
        return jsonify({'success': False, 'error': 'Request body must be JSON'}), 400

    error = _validate_patient_data(data)
    if error:
        return jsonify({'success': False, 'error': error}), 400

    for field in PATIENT_FIELDS:
        if field in data:
            setattr(patient, field, data[field])
    db.session.commit()

    log_audit('patient', 'edit', user_id=get_jwt_identity(), entity_id=patient.id, details=data)
    return jsonify({'success': True, 'data': _patient_to_dict(patient)}), 200


@patient_bp.route('/<patient_id>/discharge', methods=['POST'])
@jwt_required()
def discharge_patient(patient_id):
    """Mark a patient inactive with discharge metadata; history is kept"""
    patient = db.session.get(Patient, patient_id)
    if not patient:
        return jsonify({'success': False, 'error': 'Patient not found'}), 404

    data = request.get_json(silent=True) or {}
    if data.get('discharge_date') and not is_date_str(data['discharge_date']):
        return jsonify({'success': False, 'error': 'Invalid discharge_date format. Use YYYY-MM-DD'}), 400

    patient.is_active = False
    patient.discharge_date = data.get('discharge_date') or get_now().strftime('%Y-%m-%d')
    patient.discharge_reason = data.get('discharge_reason')
    db.session.commit()

    log_audit('patient', 'discharge', user_id=get_jwt_identity(), entity_id=patient.id)
    return jsonify({'success': True, 'message': 'Patient discharged'}), 200


@patient_bp.route('/<patient_id>/balance', methods=['GET'])
@jwt_required()
def patient_balance(patient_id):
    """Outstanding debt, total paid and last visit"""
    balance = get_patient_balance(patient_id)
    last_visit = balance['last_visit']
    return jsonify({
        'success': True,
        'data': {
            'patient_id': patient_id,
            'debt': balance['debt'],
            'total_paid': balance['total_paid'],
            'last_visit': last_visit.isoformat() if last_visit else None,
        }
    }), 200
