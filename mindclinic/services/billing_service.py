"""
Billing Service
Invoice requests handed to the external invoicing workflow
"""
import json
import logging
from typing import Optional, List, Dict, Any

import requests
from flask import current_app

from mindclinic.extensions import db
from mindclinic.exceptions import NotFoundError, ValidationError
from mindclinic.models import Appointment, BillingRequest, Patient

logger = logging.getLogger(__name__)

IN_FLIGHT_STATUSES = ('pending', 'processing')


def build_line_items(appointments: List[Appointment]) -> List[Dict[str, Any]]:
    return [
        {
            'description': f"{appt.consultation_type or 'Consulta'} - {appt.date}",
            'amount': appt.price or 0,
        }
        for appt in appointments
    ]


def request_batch_invoice(
    appointment_ids: List[int],
    patient_id: str,
    requested_by: Optional[str] = None,
    enqueue: bool = True,
) -> BillingRequest:
    """
    Queue an invoice request for one or more appointments of a patient.

    Returns:
        BillingRequest: the pending request (its id is the tracking id)
    """
    if not appointment_ids:
        raise ValidationError('At least one appointment is required')

    patient = db.session.get(Patient, patient_id)
    if not patient:
        raise NotFoundError(f'Patient with ID {patient_id} not found')

    appointments = Appointment.query.filter(Appointment.id.in_(appointment_ids)).all()
    found = {appt.id for appt in appointments}
    missing = [appt_id for appt_id in appointment_ids if appt_id not in found]
    if missing:
        raise NotFoundError('Appointments not found', details={'missing': missing})
    if any(appt.patient_id != patient.id for appt in appointments):
        raise ValidationError('All appointments must belong to the invoiced patient')

    appointments.sort(key=lambda appt: (appt.date, appt.time))
    billing_request = BillingRequest(
        request_type='batch',
        appointment_ids=json.dumps([appt.id for appt in appointments]),
        patient_id=patient.id,
        patient_name=patient.name,
        patient_dni=patient.dni or '',
        patient_email=patient.email,
        total_price=sum(appt.price or 0 for appt in appointments),
        line_items=json.dumps(build_line_items(appointments)),
        status='pending',
        retry_count=0,
        requested_by=requested_by,
    )
    db.session.add(billing_request)
    db.session.commit()
    logger.info("Queued invoice request %s for patient %s (%d appointments)",
                billing_request.id, patient.id, len(appointments))

    if enqueue:
        from tasks.billing_tasks import process_billing_request
        process_billing_request.delay(billing_request.id)

    return billing_request


def get_billing_request(request_id: int) -> BillingRequest:
    billing_request = db.session.get(BillingRequest, request_id)
    if not billing_request:
        raise NotFoundError('Billing request not found')
    return billing_request


def get_billing_status(request_id: int) -> Dict[str, Any]:
    """Status view of an invoice request as shown to the user."""
    billing_request = get_billing_request(request_id)
    return {
        'status': billing_request.status,
        'invoice_url': billing_request.invoice_url,
        'invoice_number': billing_request.invoice_number,
        'error': billing_request.error,
        'loading': billing_request.status in IN_FLIGHT_STATUSES,
    }


def send_billing_request(request_id: int) -> Dict[str, Any]:
    """
    Post a queued request to the invoicing webhook.

    A missing webhook URL marks the request 'error_config'; a non-200 answer
    or transport failure marks it 'error_sending'. On success the request
    stays 'processing' until the workflow reports completion.
    """
    billing_request = get_billing_request(request_id)
    if billing_request.status not in ('pending', 'error_sending'):
        return {'success': False, 'error': f'Request is {billing_request.status}'}

    webhook_url = current_app.config.get('BILLING_WEBHOOK_URL')
    if not webhook_url:
        logger.error("BILLING_WEBHOOK_URL is not defined")
        billing_request.status = 'error_config'
        db.session.commit()
        return {'success': False, 'error': 'BILLING_WEBHOOK_URL is not defined'}

    billing_request.status = 'processing'
    db.session.commit()

    try:
        response = requests.post(
            webhook_url,
            json=billing_request.to_payload(),
            timeout=current_app.config.get('BILLING_WEBHOOK_TIMEOUT', 30),
        )
        if response.status_code != 200:
            raise requests.exceptions.HTTPError(f"Webhook responded with status {response.status_code}")
    except requests.exceptions.RequestException as e:
        logger.error("Error sending invoice request %s: %s", request_id, e)
        billing_request.status = 'error_sending'
        billing_request.error = str(e)
        billing_request.retry_count = (billing_request.retry_count or 0) + 1
        db.session.commit()
        return {'success': False, 'error': str(e)}

    billing_request.error = None
    db.session.commit()
    return {'success': True, 'request_id': request_id}


def complete_billing_request(
    request_id: int,
    invoice_url: Optional[str] = None,
    invoice_number: Optional[str] = None,
    error: Optional[str] = None,
) -> BillingRequest:
    """Callback from the invoicing workflow: completed, or failed with an error."""
    billing_request = get_billing_request(request_id)
    if error:
        billing_request.status = 'error'
        billing_request.error = error
    else:
        billing_request.status = 'completed'
        billing_request.invoice_url = invoice_url
        billing_request.invoice_number = invoice_number
        billing_request.error = None
    db.session.commit()
    logger.info("Invoice request %s finished with status %s", request_id, billing_request.status)
    return billing_request


def retryable_request_ids() -> List[int]:
    max_retries = current_app.config.get('BILLING_MAX_RETRIES', 3)
    rows = db.session.query(BillingRequest.id).filter(
        BillingRequest.status == 'error_sending',
        BillingRequest.retry_count < max_retries,
    ).all()
    return [row[0] for row in rows]
