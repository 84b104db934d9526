"""Sweep processor: executes every pending deletion whose date has passed.

Each due user is handled in its own transaction. A failure is recorded and
the sweep moves on; the failed ledger row stays in place and is retried on
the next run. Rows consumed by a concurrent worker between our read and our
transaction are skipped.
"""
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from eventreg.clock import Clock, as_utc, system_clock
from eventreg.models.activity_log import ActivityAction
from eventreg.models.pending_deletion import PendingDeletion
from eventreg.services.activity_log_service import log_activity
from eventreg.services.deletion_service import delete_user_completely
from eventreg.services.errors import DeletionFailed, NotScheduled, UserNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    deleted_count: int
    failed_count: int = 0
    skipped_count: int = 0


def find_due(db: Session, clock: Clock = system_clock) -> list[PendingDeletion]:
    return (
        db.query(PendingDeletion)
        .filter(PendingDeletion.deletion_date <= clock.now())
        .order_by(PendingDeletion.deletion_date.asc())
        .all()
    )


def process_due(db: Session, clock: Clock = system_clock, triggered_by: str = "cron") -> SweepResult:
    """Delete all users whose scheduled deletion date is due."""
    due = [(row.user_id, as_utc(row.deletion_date)) for row in find_due(db, clock)]
    if not due:
        logger.info("Deletion sweep: nothing due")
        return SweepResult(deleted_count=0)

    deleted = failed = skipped = 0
    for user_id, deletion_date in due:
        try:
            delete_user_completely(db, user_id, clock, require_pending=True)
        except (NotScheduled, UserNotFound):
            skipped += 1
            logger.info("Deletion sweep: user %s no longer due or already handled, skipping", user_id)
            continue
        except DeletionFailed as exc:
            failed += 1
            logger.error("Deletion sweep: failed to delete user %s: %s", user_id, exc.cause)
            log_activity(
                db, user_id, ActivityAction.profile_deletion_failed,
                {
                    "reason": "scheduled_deletion_error",
                    "error": str(exc.cause),
                    "deletion_date": deletion_date.isoformat(),
                    "triggered_by": triggered_by,
                },
                clock=clock,
            )
            continue

        deleted += 1
        log_activity(
            db, None, ActivityAction.scheduled_deletion_executed,
            {
                "deleted_user_id": user_id,
                "deletion_date": deletion_date.isoformat(),
                "automated": True,
                "triggered_by": triggered_by,
            },
            clock=clock,
        )

    logger.info(
        "Deletion sweep processed %d due row(s): %d deleted, %d failed, %d skipped",
        len(due), deleted, failed, skipped,
    )
    return SweepResult(deleted_count=deleted, failed_count=failed, skipped_count=skipped)
