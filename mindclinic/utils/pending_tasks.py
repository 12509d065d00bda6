"""
Open follow-up tasks across clinical notes.
"""
from datetime import datetime

from .dates import to_date_str


def _sort_key(task):
    """
    Oldest session first. Tasks without a session date fall back to the day
    their note was written; creation time breaks ties.
    """
    created_at = task['created_at'] or datetime.min
    return (task['appointment_date'] or to_date_str(created_at), created_at, task['note_id'] or 0, task['task_index'])


def collect_pending_tasks(notes, appointment_dates, patient_names=None, patient_ids=None):
    """
    Args:
        notes: ClinicalNote instances
        appointment_dates: {appointment_id: 'YYYY-MM-DD'}
        patient_names: optional {patient_id: name}
        patient_ids: optional set restricting which patients are included

    Returns:
        list of dicts, one per incomplete task, oldest session first
    """
    patient_names = patient_names or {}
    pending = []
    for note in notes:
        if patient_ids is not None and note.patient_id not in patient_ids:
            continue
        for index, task in enumerate(note.get_tasks()):
            if task.get('completed'):
                continue
            pending.append({
                'note_id': note.id,
                'appointment_id': note.appointment_id,
                'patient_id': note.patient_id,
                'patient_name': patient_names.get(note.patient_id),
                'task_index': index,
                'text': task.get('text', ''),
                'subtasks': task.get('subtasks') or [],
                'created_at': note.created_at,
                'appointment_date': appointment_dates.get(note.appointment_id),
            })
    pending.sort(key=_sort_key)
    return pending
