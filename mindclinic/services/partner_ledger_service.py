"""
Psique Ledger Service
Reads and writes the monthly partner payment ledger
"""
import logging
from typing import Optional, Dict, Any

from sqlalchemy.exc import IntegrityError

from mindclinic.extensions import db
from mindclinic.exceptions import LedgerConflictError, ValidationError
from mindclinic.models import Appointment, Patient, PartnerPayment
from mindclinic.models.patient import PATIENT_SOURCE_PSIQUE
from mindclinic.utils.audit import get_audit_trail, log_audit
from mindclinic.utils.dates import to_date_str, to_month_str
from mindclinic.utils.partner_share import compute_month_share, ledger_doc_key
from .clock import get_now

logger = logging.getLogger(__name__)


def _validate_month(month) -> str:
    month = to_month_str(month)
    if len(month) != 7 or month[4] != '-' or not (month[:4] + month[5:]).isdigit() or not 1 <= int(month[5:]) <= 12:
        raise ValidationError('Invalid month format. Use YYYY-MM')
    return month


def _entry_query(month: str, professional: Optional[str]):
    return PartnerPayment.query.filter(
        PartnerPayment.month == month,
        PartnerPayment.professional == (professional or ''),
    )


def load_ledger(professional: Optional[str] = None) -> Dict[Any, Dict[str, Any]]:
    """
    Load ledger entries as a mapping.

    Every entry is reachable by its (month, professional) key and by its
    legacy string key.
    """
    query = PartnerPayment.query
    if professional:
        query = query.filter(PartnerPayment.professional == professional)

    ledger = {}
    for entry in query.all():
        data = entry.to_dict()
        ledger[(entry.month, entry.professional or None)] = data
        ledger[entry.doc_key] = data
    return ledger


def get_partner_patient_ids():
    rows = db.session.query(Patient.id).filter(Patient.patient_source == PATIENT_SOURCE_PSIQUE).all()
    return {row[0] for row in rows}


def get_month_share(month, professional: Optional[str] = None) -> Dict[str, Any]:
    """Recompute the Psique share for a month from stored appointments."""
    month = _validate_month(month)

    query = Appointment.query.filter(Appointment.date.like(f'{month}-%'))
    if professional:
        query = query.filter(Appointment.professional == professional)

    result = compute_month_share(
        query.all(),
        get_partner_patient_ids(),
        month,
        load_ledger(professional),
        professional,
    )

    entry = _entry_query(month, professional).first()
    result['ledger_version'] = entry.version if entry else 0
    return result


def set_paid(
    month,
    is_paid: bool,
    current_total: float,
    professional: Optional[str] = None,
    expected_version: Optional[int] = None,
    user_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Upsert the ledger entry for a month.

    Stores current_total as the amount paid; paid_date is today when marking
    as paid and cleared when unmarking. Without expected_version the last
    writer wins; with it the write only applies if the stored version still
    matches (0 meaning "no entry yet").

    Raises:
        LedgerConflictError: the entry changed since expected_version was read
    """
    month = _validate_month(month)
    professional = professional or None
    paid_date = to_date_str(get_now()) if is_paid else None
    values = {
        'total_amount': current_total,
        'is_paid': bool(is_paid),
        'paid_date': paid_date,
    }

    entry = _entry_query(month, professional).first()

    try:
        if entry is None:
            if expected_version not in (None, 0):
                raise LedgerConflictError(
                    f'Ledger entry for {month} no longer exists',
                    details={'expected_version': expected_version, 'current_version': 0},
                )
            entry = PartnerPayment(
                month=month,
                professional=professional or '',
                doc_key=ledger_doc_key(month, professional),
                version=1,
                **values
            )
            db.session.add(entry)
            db.session.flush()
        else:
            if expected_version is not None:
                # Conditional update: only applies if nobody wrote in between
                updated = PartnerPayment.query.filter(
                    PartnerPayment.id == entry.id,
                    PartnerPayment.version == expected_version,
                ).update(dict(values, version=PartnerPayment.version + 1), synchronize_session=False)
                if not updated:
                    current_version = entry.version
                    db.session.rollback()
                    raise LedgerConflictError(
                        f'Ledger entry for {month} was modified by another user',
                        details={'expected_version': expected_version, 'current_version': current_version},
                    )
                db.session.refresh(entry)
            else:
                for key, value in values.items():
                    setattr(entry, key, value)
                entry.version = (entry.version or 0) + 1

        db.session.commit()
    except IntegrityError:
        # Another writer created the same (month, professional) row first
        db.session.rollback()
        if expected_version is not None:
            raise LedgerConflictError(f'Ledger entry for {month} was created by another user')
        return set_paid(month, is_paid, current_total, professional, None, user_id)

    logger.info("Psique ledger %s set is_paid=%s total=%.2f", entry.doc_key, entry.is_paid, entry.total_amount)
    log_audit(
        'partner_payment',
        'mark_paid' if is_paid else 'mark_unpaid',
        user_id=user_id,
        entity_id=entry.doc_key,
        details={'month': month, 'professional': professional, 'total_amount': current_total},
    )
    return entry.to_dict()


def mark_month_paid(
    month,
    is_paid: bool,
    professional: Optional[str] = None,
    expected_version: Optional[int] = None,
    user_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Freeze the month's current recomputed total into the ledger."""
    share = get_month_share(month, professional)
    return set_paid(share['month'], is_paid, share['total_amount'], professional, expected_version, user_id)


def get_ledger_history(month, professional: Optional[str] = None):
    """Audit trail of paid/unpaid marks for one ledger entry."""
    month = _validate_month(month)
    return get_audit_trail('partner_payment', ledger_doc_key(month, professional or None))
