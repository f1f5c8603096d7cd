"""
Audit trail for ledger mutations.

Events are added to the caller's session and committed with the change they
describe, so a rolled-back booking leaves no audit row behind.
"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from .models import AuditEvent

logger = logging.getLogger(__name__)

ACTOR_PROFESSIONAL = "PROFESSIONAL"
ACTOR_PATIENT_LINK = "PATIENT_LINK"
ACTOR_SYSTEM = "SYSTEM"


def record_event(
    db: Session,
    action: str,
    actor_type: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[int] = None,
    professional_id: Optional[int] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> AuditEvent:
    event = AuditEvent(
        action=action,
        actor_type=actor_type,
        resource_type=resource_type,
        resource_id=resource_id,
        professional_id=professional_id,
        event_metadata=metadata or {},
    )
    db.add(event)
    logger.debug(f"📝 Audit {action} {resource_type}:{resource_id} by {actor_type}")
    return event
