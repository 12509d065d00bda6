"""
Clinical notes written after a session, with their follow-up task checklist.
Standalone tasks are stored as notes of type 'task'.
"""
import json
from mindclinic.extensions import db
from .base import TimestampMixin

NOTE_TYPE_SESSION = 'note'
NOTE_TYPE_TASK = 'task'


class ClinicalNote(db.Model, TimestampMixin):
    __tablename__ = 'clinical_notes'

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.String(36), db.ForeignKey('patients.id'), nullable=False, index=True)
    appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.id'), nullable=True, index=True)
    note_type = db.Column(db.String(10), default=NOTE_TYPE_SESSION, nullable=False)  # note, task
    content = db.Column(db.Text)

    # JSON list of {text, completed, subtasks?}; position is the task's id
    tasks = db.Column(db.Text, nullable=False, default='[]')

    created_by = db.Column(db.String(64))  # set on creation only

    def get_tasks(self):
        return json.loads(self.tasks) if self.tasks else []

    def set_tasks(self, tasks):
        self.tasks = json.dumps(tasks)

    def to_dict(self):
        return {
            'id': self.id,
            'patient_id': self.patient_id,
            'appointment_id': self.appointment_id,
            'type': self.note_type,
            'content': self.content,
            'tasks': self.get_tasks(),
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<ClinicalNote {self.id} ({self.note_type}) for {self.patient_id}>"
