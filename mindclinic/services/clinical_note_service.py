"""
Clinical Note Service
Session notes, their task checklists and the pending-task inbox
"""
import logging
from typing import Optional, List, Dict, Any

from mindclinic.extensions import db
from mindclinic.exceptions import NotFoundError, ValidationError
from mindclinic.models import Appointment, ClinicalNote, Patient
from mindclinic.models.clinical_note import NOTE_TYPE_SESSION, NOTE_TYPE_TASK
from mindclinic.utils.audit import log_audit
from mindclinic.utils.pending_tasks import collect_pending_tasks

logger = logging.getLogger(__name__)


def _clean_tasks(tasks) -> List[Dict[str, Any]]:
    """Checklist items must have text; completion defaults to False."""
    if tasks is None:
        return []
    if not isinstance(tasks, list):
        raise ValidationError('Field "tasks" must be a list')

    cleaned = []
    for task in tasks:
        if not isinstance(task, dict) or not str(task.get('text') or '').strip():
            raise ValidationError('Every task needs a "text"')
        item = {'text': task['text'].strip(), 'completed': bool(task.get('completed', False))}
        if task.get('subtasks'):
            item['subtasks'] = _clean_tasks(task['subtasks'])
        cleaned.append(item)
    return cleaned


def get_note(note_id: int) -> ClinicalNote:
    note = db.session.get(ClinicalNote, note_id)
    if not note:
        raise NotFoundError('Note not found')
    return note


def get_appointment_note(appointment_id: int) -> Optional[ClinicalNote]:
    return ClinicalNote.query.filter_by(
        appointment_id=appointment_id, note_type=NOTE_TYPE_SESSION
    ).order_by(ClinicalNote.id.asc()).first()


def list_patient_notes(patient_id: str) -> List[ClinicalNote]:
    """All notes and tasks of a patient, newest first."""
    return ClinicalNote.query.filter_by(patient_id=patient_id).order_by(
        ClinicalNote.created_at.desc(), ClinicalNote.id.desc()
    ).all()


def save_note(
    data: Dict[str, Any],
    appointment_id: Optional[int] = None,
    note_id: Optional[int] = None,
    user_id: Optional[str] = None,
) -> ClinicalNote:
    """
    Create the note of a session, or update an existing note.

    Updates keep the original author. The session is flagged as having notes.
    """
    tasks = _clean_tasks(data.get('tasks')) if 'tasks' in data else None

    if note_id is not None:
        note = get_note(note_id)
        if 'content' in data:
            note.content = data['content']
        if tasks is not None:
            note.set_tasks(tasks)
        appointment = db.session.get(Appointment, note.appointment_id) if note.appointment_id else None
        action = 'edit'
    else:
        if appointment_id is None:
            raise ValidationError('Field "appointment_id" is required')
        appointment = db.session.get(Appointment, appointment_id)
        if not appointment:
            raise NotFoundError('Appointment not found')
        note = ClinicalNote(
            patient_id=appointment.patient_id,
            appointment_id=appointment.id,
            note_type=NOTE_TYPE_SESSION,
            content=data.get('content'),
            created_by=user_id,
        )
        note.set_tasks(tasks or [])
        db.session.add(note)
        action = 'create'

    if appointment:
        appointment.has_notes = True
    db.session.commit()

    log_audit('clinical_note', action, user_id=user_id, entity_id=note.id)
    return note


def add_task(data: Dict[str, Any], user_id: Optional[str] = None) -> ClinicalNote:
    """Standalone task for a patient, optionally tied to a session."""
    content = str(data.get('content') or '').strip()
    if not content:
        raise ValidationError('Field "content" is required')

    patient_id = data.get('patient_id')
    if not patient_id or not db.session.get(Patient, patient_id):
        raise NotFoundError(f'Patient with ID {patient_id} not found')

    appointment_id = data.get('appointment_id')
    if appointment_id is not None and not db.session.get(Appointment, appointment_id):
        raise NotFoundError('Appointment not found')

    note = ClinicalNote(
        patient_id=patient_id,
        appointment_id=appointment_id,
        note_type=NOTE_TYPE_TASK,
        content=content,
        created_by=user_id,
    )
    note.set_tasks([{'text': content, 'completed': False}])
    db.session.add(note)
    db.session.commit()
    logger.info("Task %s added for patient %s", note.id, patient_id)
    return note


def complete_task(note_id: int, task_index: int, user_id: Optional[str] = None) -> ClinicalNote:
    note = get_note(note_id)
    tasks = note.get_tasks()
    if not 0 <= task_index < len(tasks):
        raise NotFoundError('Task not found')

    tasks[task_index]['completed'] = True
    note.set_tasks(tasks)
    db.session.commit()

    log_audit('clinical_note', 'complete_task', user_id=user_id, entity_id=note.id,
              details={'task_index': task_index})
    return note


def get_pending_tasks(patient_id: Optional[str] = None, professional: Optional[str] = None) -> List[Dict[str, Any]]:
    """Incomplete tasks across notes, oldest session first."""
    patients = Patient.query
    if professional:
        patients = patients.filter(Patient.professional == professional)
    patient_names = {p.id: p.name for p in patients.all()}

    notes = ClinicalNote.query
    if patient_id:
        notes = notes.filter(ClinicalNote.patient_id == patient_id)
    notes = notes.all()

    appointment_ids = {note.appointment_id for note in notes if note.appointment_id}
    appointment_dates = {}
    if appointment_ids:
        rows = db.session.query(Appointment.id, Appointment.date).filter(Appointment.id.in_(appointment_ids)).all()
        appointment_dates = {row[0]: row[1] for row in rows}

    return collect_pending_tasks(
        notes,
        appointment_dates,
        patient_names,
        patient_ids=set(patient_names) if professional else None,
    )
