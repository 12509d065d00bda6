"""
Unsaved model instances for the pure calculators.
Column defaults only apply on flush, so every flag is set explicitly.
"""
from datetime import datetime

from mindclinic.models import Appointment, Patient

# Thursday 2026-03-12 10:00 in the clinic's timezone
FIXED_NOW = datetime(2026, 3, 12, 10, 0)


def appt(patient_id='p1', patient_name='Ana', date='2026-02-10', time='10:00', price=10000,
         status='scheduled', is_paid=False, charge_on_cancellation=False, exclude_from_psique=False):
    return Appointment(
        patient_id=patient_id,
        patient_name=patient_name,
        date=date,
        time=time,
        price=price,
        status=status,
        is_paid=is_paid,
        charge_on_cancellation=charge_on_cancellation,
        exclude_from_psique=exclude_from_psique,
    )


def patient(patient_id='p1', name='Ana', fee=10000, source='private', is_active=True):
    return Patient(id=patient_id, name=name, fee=fee, patient_source=source, is_active=is_active)


class FakeResponse:
    """Stand-in for requests.Response as seen by the invoice sender."""

    def __init__(self, status_code=200):
        self.status_code = status_code
