from datetime import datetime
from mindclinic.extensions import db


class Payment(db.Model):
    """Cash receipt, optionally settling one appointment."""
    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(db.String(36), db.ForeignKey('patients.id'), nullable=True, index=True)
    patient_name = db.Column(db.String(200))
    appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.id'), nullable=True, index=True)

    amount = db.Column(db.Float, nullable=False, default=0)
    concept = db.Column(db.String(255))
    date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    created_by = db.Column(db.String(64))

    def to_dict(self):
        return {
            'id': self.id,
            'patient_id': self.patient_id,
            'patient_name': self.patient_name,
            'appointment_id': self.appointment_id,
            'amount': self.amount,
            'concept': self.concept,
            'date': self.date.isoformat() if self.date else None,
            'created_by': self.created_by,
        }

    def __repr__(self):
        return f"<Payment {self.amount} - {self.patient_name}>"
