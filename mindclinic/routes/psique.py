"""
Psique partnership: monthly revenue share and its paid/unpaid ledger
"""
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from mindclinic.services import partner_ledger_service
from mindclinic.utils.partner_share import PSIQUE_RATE

psique_bp = Blueprint('psique', __name__, url_prefix='/api/psique')


@psique_bp.route('/<month>', methods=['GET'])
@jwt_required()
def month_share(month):
    """
    Psique share for a month (YYYY-MM).
    Query params:
        professional: scope to one professional's appointments and ledger entry (optional)
    """
    data = partner_ledger_service.get_month_share(month, request.args.get('professional', type=str))
    data['rate'] = PSIQUE_RATE
    return jsonify({'success': True, 'data': data}), 200


@psique_bp.route('/<month>/paid', methods=['POST'])
@jwt_required()
def mark_paid(month):
    """
    Mark (or unmark) a month as paid to Psique, freezing the current total.
    Body:
        is_paid: bool (default true)
        professional: optional
        expected_version: optional ledger version read by the client;
            a mismatch answers 409 instead of overwriting
    """
    data = request.get_json(silent=True) or {}
    is_paid = data.get('is_paid', True)
    if not isinstance(is_paid, bool):
        return jsonify({'success': False, 'error': 'is_paid must be true or false'}), 400
    expected_version = data.get('expected_version')
    if expected_version is not None and (isinstance(expected_version, bool) or not isinstance(expected_version, int)):
        return jsonify({'success': False, 'error': 'expected_version must be an integer'}), 400

    entry = partner_ledger_service.mark_month_paid(
        month,
        is_paid,
        professional=data.get('professional'),
        expected_version=expected_version,
        user_id=get_jwt_identity(),
    )
    return jsonify({'success': True, 'data': entry}), 200


@psique_bp.route('/ledger', methods=['GET'])
@jwt_required()
def ledger():
    """All ledger entries, optionally for one professional"""
    entries = partner_ledger_service.load_ledger(request.args.get('professional', type=str))
    rows = [entry for key, entry in entries.items() if isinstance(key, str)]
    rows.sort(key=lambda entry: (entry['month'], entry['professional'] or ''), reverse=True)
    return jsonify({'success': True, 'data': rows}), 200


@psique_bp.route('/<month>/history', methods=['GET'])
@jwt_required()
def ledger_history(month):
    """Who marked or unmarked the month, newest first"""
    history = partner_ledger_service.get_ledger_history(month, request.args.get('professional', type=str))
    return jsonify({'success': True, 'data': history}), 200
