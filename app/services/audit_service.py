import logging
from typing import Optional, Dict, Any

from sqlalchemy.orm import Session

from app.core.logging_config import sanitize_log_data
from app.db.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def record_audit(
    db: Session,
    user_id: Optional[int],
    action: str,
    entity: str,
    entity_id=None,
    details: Optional[Dict[str, Any]] = None,
    commit: bool = True,
) -> AuditLog:
    """Append an audit row for an admin or billing action."""
    entry = AuditLog(
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        details=sanitize_log_data(details) if details else None,
    )
    db.add(entry)
    if commit:
        db.commit()
        db.refresh(entry)

    logger.info(f"Audit: user_id={user_id}, action={action}, entity={entity}, entity_id={entity_id}")
    return entry
