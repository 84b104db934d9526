"""Account deletion lifecycle: the operations exposed to routers and the CLI.

``request_deletion`` is the entry point for a user who wants to leave:
eligible users are erased on the spot, everyone else is scheduled and blocked
until the retention window closes and the sweep picks them up.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from eventreg.clock import Clock, system_clock
from eventreg.models.activity_log import ActivityAction
from eventreg.models.user import User
from eventreg.services import eligibility_service, scheduling_service, sweep_service
from eventreg.services.activity_log_service import log_activity
from eventreg.services.deletion_service import delete_user_completely
from eventreg.services.eligibility_service import EligibilityResult
from eventreg.services.errors import DeletionFailed, UserNotFound
from eventreg.services.scheduling_service import PendingDeletionWithUser
from eventreg.services.sweep_service import SweepResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeletionRequestResult:
    immediate: bool
    deletion_date: Optional[datetime] = None


def evaluate_deletion_eligibility(
    db: Session, user_id: str, clock: Clock = system_clock
) -> EligibilityResult:
    return eligibility_service.evaluate(db, user_id, clock)


def _identity_snapshot(db: Session, user_id: str) -> dict:
    """Who is about to disappear, captured while the row still exists."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if user is None:
        raise UserNotFound(user_id)
    return {
        "deleted_user_id": user.user_id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
    }


def delete_now(
    db: Session,
    user_id: str,
    action: ActivityAction,
    clock: Clock = system_clock,
    ip_address: Optional[str] = None,
    extra: Optional[dict] = None,
) -> None:
    """Run the executor and record the outcome under ``action``.

    A failure is logged as ``profile_deletion_failed`` and re-raised.
    """
    details = _identity_snapshot(db, user_id)
    details.update(extra or {})
    try:
        delete_user_completely(db, user_id, clock)
    except DeletionFailed as exc:
        logger.warning("%s for user %s failed: %s", action.value, user_id, exc.cause)
        log_activity(
            db, user_id, ActivityAction.profile_deletion_failed,
            {"reason": "deletion_error", "context": action.value, "error": str(exc.cause)},
            ip_address, clock=clock,
        )
        raise
    log_activity(db, None, action, details, ip_address, clock=clock)


def request_deletion(
    db: Session, user_id: str, clock: Clock = system_clock, ip_address: Optional[str] = None
) -> DeletionRequestResult:
    """Delete ``user_id`` now if allowed, otherwise schedule it and block the account.

    Eligibility is re-evaluated on every call, so a failed request can simply
    be retried.
    """
    eligibility = eligibility_service.evaluate(db, user_id, clock)
    if eligibility.can_delete:
        delete_now(db, user_id, ActivityAction.profile_deleted_immediate, clock, ip_address)
        return DeletionRequestResult(immediate=True)

    deletion_date = scheduling_service.schedule(db, user_id, clock)
    log_activity(
        db, user_id, ActivityAction.profile_deletion_scheduled,
        {"deletion_date": deletion_date.isoformat(), "reason": eligibility.reason},
        ip_address, clock=clock,
    )
    return DeletionRequestResult(immediate=False, deletion_date=deletion_date)


def cancel_scheduled_deletion(
    db: Session,
    user_id: str,
    clock: Clock = system_clock,
    ip_address: Optional[str] = None,
    cancelled_by: Optional[str] = None,
) -> None:
    scheduling_service.cancel(db, user_id)
    log_activity(
        db, user_id, ActivityAction.profile_deletion_cancelled,
        {"cancelled_by": cancelled_by} if cancelled_by else None,
        ip_address, clock=clock,
    )


def list_pending_deletions(db: Session, clock: Clock = system_clock) -> list[PendingDeletionWithUser]:
    return scheduling_service.list_pending(db, clock)


def run_due_deletions_sweep(
    db: Session,
    clock: Clock = system_clock,
    triggered_by: str = "cron",
    actor_user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> SweepResult:
    """Run one sweep and record a summary entry for it."""
    result = sweep_service.process_due(db, clock, triggered_by)
    log_activity(
        db, actor_user_id, ActivityAction.system_cron_deletion,
        {
            "deleted_count": result.deleted_count,
            "failed_count": result.failed_count,
            "triggered_by": triggered_by,
        },
        ip_address, clock=clock,
    )
    return result
