"""
Audit trail for ledger writes, payments and bulk deletions.

Entries are written after the business change has committed; a failing
audit write is logged and rolled back on its own.
"""
import json
import logging
from typing import Optional, List

from mindclinic.extensions import db
from mindclinic.models import AuditLog

logger = logging.getLogger(__name__)


def log_audit(
    entity_type: str,
    action: str,
    user_id: Optional[str] = None,
    entity_id: Optional[str] = None,
    details: Optional[dict] = None,
) -> None:
    try:
        db.session.add(AuditLog(
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            action=action,
            user_id=str(user_id) if user_id is not None else None,
            details=json.dumps(details, default=str) if details else None,
        ))
        db.session.commit()
    except Exception as e:
        logger.warning("Audit entry %s/%s for %s not stored: %s", entity_type, action, entity_id, e)
        db.session.rollback()


def get_audit_trail(entity_type: str, entity_id: Optional[str] = None, limit: int = 50) -> List[dict]:
    """Newest first, with details decoded."""
    query = AuditLog.query.filter(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        query = query.filter(AuditLog.entity_id == str(entity_id))

    trail = []
    for entry in query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all():
        data = entry.to_dict()
        data['details'] = json.loads(entry.details) if entry.details else None
        trail.append(data)
    return trail
