from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from mindclinic.models import Appointment, Patient
from mindclinic.services.clock import get_now
from mindclinic.utils.agenda_stats import compute_agenda_stats, stats_period
from mindclinic.utils.income_projection import build_projection

statistics_bp = Blueprint('statistics', __name__, url_prefix='/api/statistics')


def _load_stats(professional=None):
    now = get_now()
    period_start, period_end = stats_period(now)

    appointments = Appointment.query.filter(
        Appointment.date >= period_start,
        Appointment.date <= period_end,
    )
    patients = Patient.query
    if professional:
        appointments = appointments.filter(Appointment.professional == professional)
        patients = patients.filter(Patient.professional == professional)

    patients = patients.all()
    return compute_agenda_stats(appointments.all(), patients, now), patients


@statistics_bp.route('', methods=['GET'])
@jwt_required()
def agenda_statistics():
    """
    Attendance, cancellation and fee statistics for the last three months.
    Query params:
        professional: Filter by professional name (optional)
    """
    stats, _ = _load_stats(request.args.get('professional', type=str))
    return jsonify({'success': True, 'data': stats}), 200


@statistics_bp.route('/projection', methods=['POST'])
@jwt_required()
def income_projection():
    """
    Next-month income projection.
    Body (optional):
        professional: Filter by professional name
        session_overrides: {patient_id: sessions}, not stored
    """
    data = request.get_json(silent=True) or {}
    overrides = data.get('session_overrides') or {}
    if not isinstance(overrides, dict):
        return jsonify({'success': False, 'error': 'session_overrides must be an object'}), 400
    try:
        overrides = {str(k): int(v) for k, v in overrides.items()}
    except (TypeError, ValueError):
        return jsonify({'success': False, 'error': 'session_overrides values must be integers'}), 400

    stats, patients = _load_stats(data.get('professional'))
    projection = build_projection(stats, patients, overrides)
    return jsonify({'success': True, 'data': projection}), 200
