"""
Psique partnership revenue share.

Psique receives a fixed 25% of every paid session of a patient referred by
them. The monthly figure is recomputed from appointments on every call; the
ledger only records what was actually marked as paid.
"""
import logging
import re
import unicodedata

from .balance_calculator import is_no_charge_cancellation
from .dates import to_month_str

logger = logging.getLogger(__name__)

PSIQUE_RATE = 0.25

_UNSAFE_KEY_CHARS = re.compile(r'[/.#$\[\]]')


def sanitize_professional(professional):
    """Replace characters that are not allowed in legacy ledger keys."""
    return _UNSAFE_KEY_CHARS.sub('_', professional)


def ledger_doc_key(month, professional=None):
    """Legacy string key: 'YYYY-MM' or 'YYYY-MM_<sanitized professional>'."""
    if professional:
        return f"{month}_{sanitize_professional(professional)}"
    return month


def name_sort_key(name):
    """Case and accent insensitive ordering for patient names."""
    decomposed = unicodedata.normalize('NFKD', name or '')
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (stripped.casefold(), name or '')


def is_eligible_for_share(appointment, partner_patient_ids, month):
    if not appointment.is_paid:
        return False
    if is_no_charge_cancellation(appointment):
        return False
    if appointment.patient_id not in partner_patient_ids:
        return False
    if appointment.exclude_from_psique:
        return False
    return (appointment.date or '').startswith(month)


def find_ledger_entry(ledger, month, professional=None):
    """
    Look the month up in a ledger mapping.

    The composite (month, professional) key wins; the legacy sanitized string
    key is kept for ledgers exported from the old store.
    """
    if not ledger:
        return None
    entry = ledger.get((month, professional or None))
    if entry is None:
        entry = ledger.get(ledger_doc_key(month, professional))
    return entry


def compute_month_share(appointments, partner_patient_ids, target_month, ledger=None, professional=None):
    """
    Compute what is owed to Psique for one month.

    Args:
        appointments: appointments to consider (any months)
        partner_patient_ids: ids of patients referred by Psique
        target_month: 'YYYY-MM' or a date inside the month
        ledger: mapping of ledger entries (dicts with is_paid, paid_date, total_amount)
        professional: optional professional scoping the ledger entry

    Returns:
        dict with month, total_amount, patient_breakdown, is_paid, paid_date and,
        when a paid entry disagrees with the recomputed total, is_stale and
        ledger_total_amount
    """
    month = to_month_str(target_month)
    partner_patient_ids = set(partner_patient_ids)

    buckets = {}
    for appt in appointments:
        if not is_eligible_for_share(appt, partner_patient_ids, month):
            continue
        bucket = buckets.setdefault(appt.patient_id, {
            'patient_id': appt.patient_id,
            'patient_name': appt.patient_name,
            'session_count': 0,
            'total_fee': 0,
            'psique_amount': 0,
        })
        fee = appt.price or 0
        bucket['session_count'] += 1
        bucket['total_fee'] += fee
        bucket['psique_amount'] += fee * PSIQUE_RATE

    breakdown = sorted(buckets.values(), key=lambda row: name_sort_key(row['patient_name']))
    total_amount = sum(row['psique_amount'] for row in breakdown)

    entry = find_ledger_entry(ledger, month, professional) or {}
    is_paid = bool(entry.get('is_paid', False))

    result = {
        'month': month,
        'total_amount': total_amount,
        'patient_breakdown': breakdown,
        'is_paid': is_paid,
        'paid_date': entry.get('paid_date') if entry else None,
        'is_stale': False,
    }

    ledger_total = entry.get('total_amount')
    if is_paid and ledger_total is not None and abs(ledger_total - total_amount) > 0.005:
        # The frozen amount is what was paid; report the drift, never overwrite it
        logger.warning(
            "Psique ledger %s was paid for %.2f but appointments now add up to %.2f",
            ledger_doc_key(month, professional), ledger_total, total_amount,
        )
        result['is_stale'] = True
        result['ledger_total_amount'] = ledger_total

    return result
