"""
Appointment Service
Scheduling rules: single appointments, recurring series and bulk deletion
"""
import logging
import uuid
from typing import Optional, List, Dict, Any

from mindclinic.extensions import db
from mindclinic.exceptions import NotFoundError, ValidationError
from mindclinic.models import Appointment, ClinicalNote, Patient, Payment
from mindclinic.models.appointment import APPOINTMENT_STATUSES, MODALITIES, STATUS_SCHEDULED
from mindclinic.utils.audit import log_audit
from mindclinic.utils.dates import is_date_str, is_time_str
from mindclinic.utils.recurrence import generate_recurrence_dates

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'date', 'time', 'duration', 'modality', 'meet_link', 'consultation_type', 'status',
    'is_paid', 'price', 'charge_on_cancellation', 'exclude_from_psique', 'professional',
)


def _validate_fields(data: Dict[str, Any]) -> None:
    if 'date' in data and not is_date_str(data['date']):
        raise ValidationError('Invalid date format. Use YYYY-MM-DD')
    if 'time' in data and data['time'] is not None and not is_time_str(data['time']):
        raise ValidationError('Invalid time format. Use HH:MM (e.g., 10:30)')
    if 'status' in data and data['status'] not in APPOINTMENT_STATUSES:
        raise ValidationError(f'Invalid status. Use one of: {", ".join(APPOINTMENT_STATUSES)}')
    if 'modality' in data and data['modality'] not in MODALITIES:
        raise ValidationError(f'Invalid modality. Use one of: {", ".join(MODALITIES)}')
    if data.get('price') is not None:
        try:
            if float(data['price']) < 0:
                raise ValidationError('Price cannot be negative')
        except (TypeError, ValueError):
            raise ValidationError('Price must be a number')


def get_appointment(appointment_id: int) -> Appointment:
    appointment = db.session.get(Appointment, appointment_id)
    if not appointment:
        raise NotFoundError('Appointment not found')
    return appointment


def _build_appointment(patient: Patient, data: Dict[str, Any], user_id: Optional[str]) -> Appointment:
    return Appointment(
        patient_id=patient.id,
        patient_name=patient.name,
        professional=data.get('professional') or patient.professional,
        date=data['date'],
        time=data.get('time') or '00:00',
        duration=data.get('duration') or 50,
        modality=data.get('modality') or patient.modality or 'in-person',
        meet_link=data.get('meet_link'),
        consultation_type=data.get('consultation_type'),
        status=data.get('status') or STATUS_SCHEDULED,
        is_paid=bool(data.get('is_paid', False)),
        price=data['price'] if data.get('price') is not None else patient.fee,
        charge_on_cancellation=bool(data.get('charge_on_cancellation', False)),
        exclude_from_psique=bool(data.get('exclude_from_psique', False)),
        created_by=user_id,
    )


def _get_patient(patient_id: str) -> Patient:
    if not patient_id:
        raise ValidationError('Field "patient_id" is required')
    patient = db.session.get(Patient, patient_id)
    if not patient:
        raise NotFoundError(f'Patient with ID {patient_id} not found')
    return patient


def create_appointment(data: Dict[str, Any], user_id: Optional[str] = None) -> Appointment:
    """
    Create a single appointment.
    Price defaults to the patient's current fee.
    """
    if not data.get('date'):
        raise ValidationError('Field "date" is required')
    _validate_fields(data)
    patient = _get_patient(data.get('patient_id'))

    appointment = _build_appointment(patient, data, user_id)
    db.session.add(appointment)
    db.session.commit()
    return appointment


def create_recurring_series(
    data: Dict[str, Any],
    frequency: str,
    count: int,
    user_id: Optional[str] = None,
) -> List[Appointment]:
    """
    Create a recurring series in one transaction.

    Every appointment shares a new recurrence_id and carries its position
    in recurrence_index.
    """
    if not data.get('date'):
        raise ValidationError('Field "date" is required')
    _validate_fields(data)
    patient = _get_patient(data.get('patient_id'))

    try:
        dates = generate_recurrence_dates(data['date'], frequency, int(count))
    except (TypeError, ValueError) as e:
        raise ValidationError(str(e))
    if not dates:
        raise ValidationError('Series must contain at least one appointment')

    series_id = str(uuid.uuid4())
    rule = frequency.upper()
    appointments = []
    for index, date_str in enumerate(dates):
        appointment = _build_appointment(patient, dict(data, date=date_str), user_id)
        appointment.recurrence_id = series_id
        appointment.recurrence_index = index
        appointment.recurrence_rule = rule
        appointments.append(appointment)

    db.session.add_all(appointments)
    db.session.commit()
    logger.info("Created %s series %s with %d appointments for patient %s", rule, series_id, len(appointments), patient.id)
    return appointments


def update_appointment(appointment_id: int, data: Dict[str, Any]) -> Appointment:
    appointment = get_appointment(appointment_id)
    _validate_fields(data)
    for field in EDITABLE_FIELDS:
        if field in data:
            setattr(appointment, field, data[field])
    if appointment.time is None:
        appointment.time = '00:00'
    db.session.commit()
    return appointment


def _detach_dependents(appointment_ids: List[int]) -> None:
    """Payments and clinical notes outlive the appointments they belong to."""
    if appointment_ids:
        Payment.query.filter(Payment.appointment_id.in_(appointment_ids)).update(
            {'appointment_id': None}, synchronize_session=False
        )
        ClinicalNote.query.filter(ClinicalNote.appointment_id.in_(appointment_ids)).update(
            {'appointment_id': None}, synchronize_session=False
        )


def delete_appointment(appointment_id: int, user_id: Optional[str] = None) -> None:
    appointment = get_appointment(appointment_id)
    _detach_dependents([appointment.id])
    db.session.delete(appointment)
    db.session.commit()
    log_audit('appointment', 'delete', user_id=user_id, entity_id=appointment_id)


def delete_series(recurrence_id: str, from_date: Optional[str] = None, user_id: Optional[str] = None) -> int:
    """
    Delete a whole series, or only the appointments on/after from_date.

    Returns:
        int: number of deleted appointments
    """
    if from_date is not None and not is_date_str(from_date):
        raise ValidationError('Invalid from_date format. Use YYYY-MM-DD')

    query = Appointment.query.filter(Appointment.recurrence_id == recurrence_id)
    if from_date:
        query = query.filter(Appointment.date >= from_date)

    appointments = query.all()
    _detach_dependents([appointment.id for appointment in appointments])
    for appointment in appointments:
        db.session.delete(appointment)
    db.session.commit()

    if appointments:
        log_audit('appointment', 'delete_series', user_id=user_id, entity_id=recurrence_id,
                  details={'from_date': from_date, 'deleted': len(appointments)})
    return len(appointments)


def list_appointments(
    start: Optional[str] = None,
    end: Optional[str] = None,
    patient_id: Optional[str] = None,
    professional: Optional[str] = None,
) -> List[Appointment]:
    """Appointments ordered by date and time; bounds are inclusive string comparisons."""
    for bound in (start, end):
        if bound and not is_date_str(bound):
            raise ValidationError('Invalid date range. Use YYYY-MM-DD')

    query = Appointment.query
    if start:
        query = query.filter(Appointment.date >= start)
    if end:
        query = query.filter(Appointment.date <= end)
    if patient_id:
        query = query.filter(Appointment.patient_id == patient_id)
    if professional:
        query = query.filter(Appointment.professional == professional)
    return query.order_by(Appointment.date.asc(), Appointment.time.asc()).all()
