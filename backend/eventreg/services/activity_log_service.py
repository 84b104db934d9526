"""Best-effort activity logging.

Writing an audit entry must never break the operation that triggered it, so
``log_activity`` swallows database errors after logging them. It commits its
own row: call it outside of any open unit of work.
"""
import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eventreg.clock import Clock, system_clock
from eventreg.models.activity_log import ActivityLog, ActivityAction

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    user_id: Optional[str],
    action: ActivityAction,
    details: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    clock: Clock = system_clock,
) -> None:
    """Append one entry to the activity log. Never raises on storage errors."""
    try:
        db.add(ActivityLog(
            user_id=user_id,
            action_type=action,
            details=details,
            ip_address=ip_address,
            timestamp=clock.now(),
        ))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to write activity log entry %s for user %s", action.value, user_id)
