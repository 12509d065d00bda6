from mindclinic.extensions import db
from .base import TimestampMixin

STATUS_SCHEDULED = 'scheduled'
STATUS_COMPLETED = 'completed'
STATUS_CANCELLED = 'cancelled'
STATUS_NO_SHOW = 'no-show'
STATUS_PRESENT = 'present'

APPOINTMENT_STATUSES = (STATUS_SCHEDULED, STATUS_COMPLETED, STATUS_CANCELLED, STATUS_NO_SHOW, STATUS_PRESENT)
MODALITIES = ('in-person', 'online')


class Appointment(db.Model, TimestampMixin):
    __tablename__ = 'appointments'

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.String(36), db.ForeignKey('patients.id'), nullable=False, index=True)
    patient_name = db.Column(db.String(200), nullable=False)  # denormalized for listings
    professional = db.Column(db.String(100), index=True)

    # Dates stay as strings so range filters and sorting are plain string comparisons
    date = db.Column(db.String(10), nullable=False, index=True)  # YYYY-MM-DD
    time = db.Column(db.String(5), nullable=False, default='00:00')  # HH:MM
    duration = db.Column(db.Integer, default=50)  # minutes
    modality = db.Column(db.String(20), default='in-person')  # in-person, online
    meet_link = db.Column(db.String(500))
    consultation_type = db.Column(db.String(100))

    # Status: scheduled, completed, cancelled, no-show, present
    status = db.Column(db.String(20), default=STATUS_SCHEDULED, nullable=False, index=True)

    # Billing
    is_paid = db.Column(db.Boolean, default=False, nullable=False)
    price = db.Column(db.Float)
    charge_on_cancellation = db.Column(db.Boolean, default=False, nullable=False)
    exclude_from_psique = db.Column(db.Boolean, default=False, nullable=False)
    has_notes = db.Column(db.Boolean, default=False, nullable=False)

    # Recurring series
    recurrence_id = db.Column(db.String(36), index=True)
    recurrence_index = db.Column(db.Integer)
    recurrence_rule = db.Column(db.String(20))  # WEEKLY, BIWEEKLY, MONTHLY

    created_by = db.Column(db.String(64))

    def to_dict(self):
        return {
            'id': self.id,
            'patient_id': self.patient_id,
            'patient_name': self.patient_name,
            'professional': self.professional,
            'date': self.date,
            'time': self.time,
            'duration': self.duration,
            'modality': self.modality,
            'meet_link': self.meet_link,
            'consultation_type': self.consultation_type,
            'status': self.status,
            'is_paid': bool(self.is_paid),
            'price': self.price,
            'charge_on_cancellation': bool(self.charge_on_cancellation),
            'exclude_from_psique': bool(self.exclude_from_psique),
            'has_notes': bool(self.has_notes),
            'recurrence_id': self.recurrence_id,
            'recurrence_index': self.recurrence_index,
            'recurrence_rule': self.recurrence_rule,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Appointment {self.patient_id} on {self.date} {self.time} ({self.status})>"
