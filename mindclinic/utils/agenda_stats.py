"""
Agenda statistics over the trailing three-month window.
Feeds the income projection.
"""
from mindclinic.models.appointment import (
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_NO_SHOW,
    STATUS_PRESENT,
)
from .dates import month_start, round_half_up, to_date_str
from .partner_share import name_sort_key

PERIOD_MONTHS = 3

# Used when nobody had a session in the window
DEFAULT_SESSIONS_PER_MONTH = 4


def is_completed_for_stats(appointment):
    """
    Attendance rule for statistics: a paid session counts as held even if
    its status was never updated.
    """
    return appointment.status in (STATUS_COMPLETED, STATUS_PRESENT) or bool(appointment.is_paid)


def stats_period(now):
    """
    Window bounds as ('YYYY-MM-DD', 'YYYY-MM-DD'): first day of the month
    PERIOD_MONTHS back, through today.
    """
    return to_date_str(month_start(now, PERIOD_MONTHS)), to_date_str(now)


def compute_agenda_stats(appointments, patients, now):
    """
    Args:
        appointments: all appointments (filtered to the window here)
        patients: all patients; only active ones get per-patient rows
        now: reference datetime

    Returns:
        dict: per-patient stats, global averages, rates and window metadata
    """
    period_start, period_end = stats_period(now)

    completed = no_show = cancelled = 0
    total_revenue = 0
    sessions_by_patient = {}

    for appt in appointments:
        if not appt.date or appt.date < period_start or appt.date > period_end:
            continue

        if is_completed_for_stats(appt):
            completed += 1
            revenue = appt.price or 0
            total_revenue += revenue
            sessions = sessions_by_patient.setdefault(appt.patient_id, {'count': 0, 'revenue': 0})
            sessions['count'] += 1
            sessions['revenue'] += revenue
        elif appt.status == STATUS_NO_SHOW:
            no_show += 1
        elif appt.status == STATUS_CANCELLED:
            cancelled += 1

    active_patients = [p for p in patients if p.is_active]

    patient_stats = []
    for patient in active_patients:
        count = sessions_by_patient.get(patient.id, {}).get('count', 0)
        patient_stats.append({
            'patient_id': patient.id,
            'patient_name': patient.name,
            'avg_sessions': round_half_up(count / PERIOD_MONTHS, 1),
            'total_sessions': count,
            'fee': patient.fee or 0,
            'is_psique': patient.is_psique,
        })
    patient_stats.sort(key=lambda row: name_sort_key(row['patient_name']))

    patients_with_sessions = len(sessions_by_patient)
    if patients_with_sessions:
        avg_sessions_per_patient = round_half_up(completed / patients_with_sessions / PERIOD_MONTHS, 1)
    else:
        avg_sessions_per_patient = DEFAULT_SESSIONS_PER_MONTH

    fees = [p.fee for p in active_patients if (p.fee or 0) > 0]
    avg_fee = round_half_up(sum(fees) / len(fees)) if fees else 0

    avg_session_value = round_half_up(total_revenue / completed) if completed else avg_fee

    relevant_total = completed + no_show + cancelled
    no_show_rate = round_half_up(no_show / relevant_total, 3) if relevant_total else 0
    cancellation_rate = round_half_up(cancelled / relevant_total, 3) if relevant_total else 0

    return {
        'patient_stats': patient_stats,
        'avg_sessions_per_patient': avg_sessions_per_patient,
        'avg_fee': avg_fee,
        'avg_session_value': avg_session_value,
        'no_show_rate': no_show_rate,
        'cancellation_rate': cancellation_rate,
        'period_months': PERIOD_MONTHS,
        'total_patients': len(active_patients),
        'total_completed_sessions': completed,
        'total_scheduled_appointments': relevant_total,
        'period_start': period_start,
        'period_end': period_end,
    }
