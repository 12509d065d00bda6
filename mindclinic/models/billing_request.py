"""
Invoice request queue.
Requests are appended as 'pending' and handed to the external invoicing workflow.
"""
import json
from datetime import datetime
from mindclinic.extensions import db

BILLING_STATUSES = ('pending', 'processing', 'completed', 'error', 'error_sending', 'error_config')


class BillingRequest(db.Model):
    __tablename__ = 'billing_requests'

    id = db.Column(db.Integer, primary_key=True)
    request_type = db.Column(db.String(20), default='batch', nullable=False)

    appointment_ids = db.Column(db.Text, nullable=False)  # JSON list
    patient_id = db.Column(db.String(36), db.ForeignKey('patients.id'), nullable=False, index=True)
    patient_name = db.Column(db.String(200))
    patient_dni = db.Column(db.String(20), default='')
    patient_email = db.Column(db.String(120))
    total_price = db.Column(db.Float, nullable=False, default=0)
    line_items = db.Column(db.Text, nullable=False)  # JSON list of {description, amount}

    # Status: pending, processing, completed, error, error_sending, error_config
    status = db.Column(db.String(20), default='pending', nullable=False, index=True)
    invoice_url = db.Column(db.String(500))
    invoice_number = db.Column(db.String(50))
    error = db.Column(db.Text)
    retry_count = db.Column(db.Integer, default=0, nullable=False)

    requested_by = db.Column(db.String(64))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def get_appointment_ids(self):
        return json.loads(self.appointment_ids) if self.appointment_ids else []

    def get_line_items(self):
        return json.loads(self.line_items) if self.line_items else []

    def to_payload(self):
        """Body sent to the invoicing webhook"""
        return {
            'type': self.request_type,
            'appointmentIds': self.get_appointment_ids(),
            'patientId': self.patient_id,
            'patientName': self.patient_name,
            'patientDni': self.patient_dni or '',
            'patientEmail': self.patient_email,
            'totalPrice': self.total_price,
            'lineItems': self.get_line_items(),
            'status': self.status,
            'retryCount': self.retry_count,
            'requestedBy': self.requested_by,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'requestId': str(self.id),
        }

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.request_type,
            'appointment_ids': self.get_appointment_ids(),
            'patient_id': self.patient_id,
            'patient_name': self.patient_name,
            'patient_dni': self.patient_dni,
            'patient_email': self.patient_email,
            'total_price': self.total_price,
            'line_items': self.get_line_items(),
            'status': self.status,
            'invoice_url': self.invoice_url,
            'invoice_number': self.invoice_number,
            'error': self.error,
            'retry_count': self.retry_count,
            'requested_by': self.requested_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<BillingRequest {self.id} {self.status}>"
