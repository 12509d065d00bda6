"""
Payment Service
Recording payments and patient balances
"""
import logging
from typing import Optional, Dict, Any

from mindclinic.extensions import db
from mindclinic.exceptions import NotFoundError, ValidationError
from mindclinic.models import Appointment, Patient, Payment
from mindclinic.utils.audit import log_audit
from mindclinic.utils.balance_calculator import compute_balance
from .clock import get_now

logger = logging.getLogger(__name__)


def _parse_amount(value) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError('Field "amount" must be a number')
    if amount < 0:
        raise ValidationError('Field "amount" cannot be negative')
    return amount


def record_payment(data: Dict[str, Any], appointment_id: Optional[int] = None, user_id: Optional[str] = None) -> Payment:
    """
    Record a payment. When linked to an appointment, the appointment is
    marked as paid in the same transaction.
    """
    if data.get('amount') is None:
        raise ValidationError('Field "amount" is required')
    amount = _parse_amount(data['amount'])

    appointment = None
    if appointment_id is not None:
        appointment = db.session.get(Appointment, appointment_id)
        if not appointment:
            raise NotFoundError('Appointment not found')

    patient_id = data.get('patient_id') or (appointment.patient_id if appointment else None)
    patient = db.session.get(Patient, patient_id) if patient_id else None
    if patient_id and not patient:
        raise NotFoundError(f'Patient with ID {patient_id} not found')

    payment = Payment(
        patient_id=patient_id,
        patient_name=data.get('patient_name') or (patient.name if patient else None),
        appointment_id=appointment.id if appointment else None,
        amount=amount,
        concept=data.get('concept'),
        date=get_now(),
        created_by=user_id,
    )

    try:
        db.session.add(payment)
        if appointment:
            appointment.is_paid = True
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    log_audit('payment', 'create', user_id=user_id, entity_id=payment.id,
              details={'amount': amount, 'appointment_id': payment.appointment_id})
    return payment


def get_payment(payment_id: int) -> Payment:
    payment = db.session.get(Payment, payment_id)
    if not payment:
        raise NotFoundError('Payment not found')
    return payment


def update_payment(payment_id: int, data: Dict[str, Any], user_id: Optional[str] = None) -> Payment:
    payment = get_payment(payment_id)
    if 'amount' in data:
        payment.amount = _parse_amount(data['amount'])
    if 'concept' in data:
        payment.concept = data['concept']
    db.session.commit()
    log_audit('payment', 'edit', user_id=user_id, entity_id=payment.id, details=data)
    return payment


def delete_payment(payment_id: int, user_id: Optional[str] = None) -> None:
    """Delete a payment. The linked appointment keeps its paid flag."""
    payment = get_payment(payment_id)
    db.session.delete(payment)
    db.session.commit()
    log_audit('payment', 'delete', user_id=user_id, entity_id=payment_id)


def get_patient_balance(patient_id: str) -> Dict[str, Any]:
    patient = db.session.get(Patient, patient_id)
    if not patient:
        raise NotFoundError('Patient not found')

    appointments = Appointment.query.filter_by(patient_id=patient_id).all()
    payments = Payment.query.filter_by(patient_id=patient_id).all()
    return compute_balance(appointments, payments, get_now())
