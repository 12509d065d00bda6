"""
Patient balance: outstanding debt, total paid and last visit.
"""
from datetime import timedelta

from mindclinic.models.appointment import STATUS_CANCELLED
from .dates import parse_appointment_start, to_date_str

# Unpaid sessions count as overdue one hour after they start
OVERDUE_GRACE = timedelta(hours=1)


def is_no_charge_cancellation(appointment):
    """A cancelled appointment that does not bill the patient."""
    return appointment.status == STATUS_CANCELLED and not appointment.charge_on_cancellation


def is_overdue(appointment, now):
    """
    True when the appointment's start time plus the grace period has passed.
    Appointments with unparseable dates are never overdue.
    """
    start = parse_appointment_start(appointment.date, appointment.time)
    if start is None:
        return False
    return now > start + OVERDUE_GRACE


def compute_balance(appointments, payments, now):
    """
    Compute a patient's balance.

    Args:
        appointments: the patient's appointments
        payments: the patient's payments
        now: reference datetime

    Returns:
        dict: {'debt': float, 'total_paid': float, 'last_visit': datetime or None}
    """
    today = to_date_str(now)
    debt = 0
    last_visit = None

    for appt in appointments:
        start = parse_appointment_start(appt.date, appt.time)
        if start is not None and start < now and (last_visit is None or start > last_visit):
            last_visit = start

        if appt.is_paid or is_no_charge_cancellation(appt):
            continue
        if appt.date and appt.date < today:
            debt += appt.price or 0

    total_paid = sum(payment.amount or 0 for payment in payments)

    return {
        'debt': debt,
        'total_paid': total_paid,
        'last_visit': last_visit,
    }


def pending_debts(appointments, now, limit=None):
    """Unpaid, overdue, billable appointments, newest first."""
    debts = [
        appt for appt in appointments
        if not appt.is_paid and not is_no_charge_cancellation(appt) and is_overdue(appt, now)
    ]
    debts.sort(key=lambda appt: appt.date, reverse=True)
    return debts[:limit] if limit is not None else debts
