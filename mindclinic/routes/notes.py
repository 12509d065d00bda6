"""
Clinical notes and follow-up tasks
"""
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from mindclinic.services import clinical_note_service

notes_bp = Blueprint('notes', __name__, url_prefix='/api/notes')


@notes_bp.route('', methods=['GET'])
@jwt_required()
def list_notes():
    """
    Notes and tasks of one patient, newest first.
    Query params:
        patient_id: required
    """
    patient_id = request.args.get('patient_id', type=str)
    if not patient_id:
        return jsonify({'success': False, 'error': 'patient_id is required'}), 400

    notes = clinical_note_service.list_patient_notes(patient_id)
    return jsonify({
        'success': True,
        'data': [note.to_dict() for note in notes],
        'total': len(notes)
    }), 200


@notes_bp.route('/appointment/<int:appointment_id>', methods=['GET'])
@jwt_required()
def appointment_note(appointment_id):
    note = clinical_note_service.get_appointment_note(appointment_id)
    return jsonify({'success': True, 'data': note.to_dict() if note else None}), 200


@notes_bp.route('', methods=['POST'])
@jwt_required()
def create_note():
    """
    Write the note of a session.
    Body: appointment_id, content, tasks (optional list of {text, completed})
    """
    data = request.get_json()
    if not data:
        return jsonify({'success': False, 'error': 'Request body must be JSON'}), 400

    note = clinical_note_service.save_note(
        data,
        appointment_id=data.get('appointment_id'),
        user_id=get_jwt_identity(),
    )
    return jsonify({'success': True, 'data': note.to_dict()}), 201


@notes_bp.route('/<int:note_id>', methods=['PUT'])
@jwt_required()
def update_note(note_id):
    data = request.get_json()
    if not data:
        return jsonify({'success': False, 'error': 'Request body must be JSON'}), 400

    note = clinical_note_service.save_note(data, note_id=note_id, user_id=get_jwt_identity())
    return jsonify({'success': True, 'data': note.to_dict()}), 200


@notes_bp.route('/tasks/pending', methods=['GET'])
@jwt_required()
def pending_tasks():
    """
    Open tasks, oldest session first.
    Query params:
        patient_id: optional
        professional: optional
    """
    tasks = clinical_note_service.get_pending_tasks(
        patient_id=request.args.get('patient_id', type=str),
        professional=request.args.get('professional', type=str),
    )
    for task in tasks:
        task['created_at'] = task['created_at'].isoformat() if task['created_at'] else None
    return jsonify({'success': True, 'data': tasks, 'total': len(tasks)}), 200


@notes_bp.route('/tasks', methods=['POST'])
@jwt_required()
def add_task():
    """
    Standalone task.
    Body: patient_id, content, appointment_id (optional)
    """
    data = request.get_json()
    if not data:
        return jsonify({'success': False, 'error': 'Request body must be JSON'}), 400

    note = clinical_note_service.add_task(data, user_id=get_jwt_identity())
    return jsonify({'success': True, 'data': note.to_dict()}), 201


@notes_bp.route('/<int:note_id>/tasks/<int:task_index>/complete', methods=['POST'])
@jwt_required()
def complete_task(note_id, task_index):
    note = clinical_note_service.complete_task(note_id, task_index, user_id=get_jwt_identity())
    return jsonify({'success': True, 'data': note.to_dict()}), 200
