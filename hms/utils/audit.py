"""
Tenant-scoped audit trail for bookings, slot conflicts, reschedules,
status changes, document exports and logins.

Entries are written after the business change has committed, so a failed
audit write is logged and rolled back without touching the booking.
"""
import json
import logging

from hms.models import AuditLog

logger = logging.getLogger(__name__)


def log_audit(session, actor, entity_type, action, entity_id=None, **details):
    """
    Record `action` on `entity_type` by `actor` (an AuthContext).
    Extra keyword arguments are stored as the JSON details payload.
    """
    try:
        session.add(AuditLog(
            hospital_id=actor.hospital_id,
            user_id=actor.user_id,
            entity_type=entity_type,
            entity_id=None if entity_id is None else str(entity_id),
            action=action,
            details=json.dumps(details, default=str) if details else None,
        ))
        session.commit()
    except Exception as e:
        logger.warning("Audit %s/%s by user %s not recorded: %s", entity_type, action, actor.user_id, e)
        session.rollback()
