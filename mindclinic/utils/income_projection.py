"""
Next-month income projection from agenda statistics.
"""
from .dates import round_half_up
from .partner_share import PSIQUE_RATE


def project_income(fee, session_count, is_psique, exclude_from_psique=False):
    """
    Projected income for one patient.

    Returns:
        dict: {'gross', 'net', 'psique_discount'}
    """
    gross = (fee or 0) * session_count
    psique_discount = gross * PSIQUE_RATE if is_psique and not exclude_from_psique else 0
    return {
        'gross': gross,
        'net': gross - psique_discount,
        'psique_discount': psique_discount,
    }


def default_session_count(patient_row, avg_sessions_per_patient):
    """Patient's own monthly average, or the global one when they have none."""
    if patient_row['avg_sessions'] > 0:
        return round_half_up(patient_row['avg_sessions'])
    return round_half_up(avg_sessions_per_patient)


def build_projection(stats, patients, session_overrides=None):
    """
    Build per-patient projection rows and their totals.

    Args:
        stats: output of compute_agenda_stats
        patients: patient collection (only patients with a fee are projected)
        session_overrides: optional {patient_id: sessions}; negatives clamp to 0.
            Overrides are transient and never stored.

    Returns:
        dict: {'rows': [...], 'totals': {'sessions', 'gross', 'net', 'psique_discount'}}
    """
    session_overrides = session_overrides or {}
    fees = {p.id: p.fee or 0 for p in patients}

    rows = []
    for row in stats['patient_stats']:
        if fees.get(row['patient_id'], 0) <= 0:
            continue

        if row['patient_id'] in session_overrides:
            sessions = max(0, int(session_overrides[row['patient_id']] or 0))
        else:
            sessions = default_session_count(row, stats['avg_sessions_per_patient'])

        income = project_income(row['fee'], sessions, row['is_psique'])
        rows.append(dict(
            row,
            estimated_sessions=sessions,
            projected_gross=income['gross'],
            projected_net=income['net'],
            psique_discount=income['psique_discount'],
        ))

    totals = {
        'sessions': sum(r['estimated_sessions'] for r in rows),
        'gross': sum(r['projected_gross'] for r in rows),
        'net': sum(r['projected_net'] for r in rows),
        'psique_discount': sum(r['psique_discount'] for r in rows),
    }
    return {'rows': rows, 'totals': totals}
