import uuid
from mindclinic.extensions import db
from .base import TimestampMixin

PATIENT_SOURCE_PSIQUE = 'psique'
PATIENT_SOURCE_PRIVATE = 'private'


class Patient(db.Model, TimestampMixin):
    __tablename__ = 'patients'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Personal
    name = db.Column(db.String(200), nullable=False, index=True)  # display name
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    email = db.Column(db.String(120))
    phone = db.Column(db.String(30))
    dni = db.Column(db.String(20))  # national ID, required on invoices
    birth_date = db.Column(db.String(10))  # YYYY-MM-DD, may be unknown

    # Care
    fee = db.Column(db.Float)  # nominal per-session price
    modality = db.Column(db.String(20), default='in-person')  # in-person, online
    professional = db.Column(db.String(100), index=True)
    patient_source = db.Column(db.String(20), default=PATIENT_SOURCE_PRIVATE, nullable=False)  # psique, private

    # Status / discharge
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    discharge_date = db.Column(db.String(10))
    discharge_reason = db.Column(db.Text)

    # Guardian (only meaningful for minors)
    guardian_name = db.Column(db.String(200))
    guardian_phone = db.Column(db.String(30))
    guardian_relationship = db.Column(db.String(50))

    appointments = db.relationship('Appointment', backref='patient', lazy='dynamic')
    payments = db.relationship('Payment', backref='patient', lazy='dynamic')

    @property
    def is_psique(self):
        return self.patient_source == PATIENT_SOURCE_PSIQUE

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'email': self.email,
            'phone': self.phone,
            'dni': self.dni,
            'birth_date': self.birth_date,
            'fee': self.fee,
            'modality': self.modality,
            'professional': self.professional,
            'patient_source': self.patient_source,
            'is_active': self.is_active,
            'discharge_date': self.discharge_date,
            'discharge_reason': self.discharge_reason,
            'guardian_name': self.guardian_name,
            'guardian_phone': self.guardian_phone,
            'guardian_relationship': self.guardian_relationship,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Patient {self.name} ({self.id})>"
