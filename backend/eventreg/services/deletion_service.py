"""Deletion executor: erases one account atomically.

Archive, admin grant, registrations, ledger row, reviews, activity-log
identity and finally the user row are all handled in a single unit of work.
Either every step lands or none does.

The executor does not look at eligibility. Deciding *when* a user may go is
the job of the eligibility and scheduling services; this module only knows
*how*.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from eventreg.clock import Clock, system_clock
from eventreg.database import atomic
from eventreg.models.activity_log import ActivityLog
from eventreg.models.admin import Admin
from eventreg.models.pending_deletion import PendingDeletion
from eventreg.models.registration import Registration
from eventreg.models.review import Review
from eventreg.models.user import User
from eventreg.services.archive_service import build_archive_record
from eventreg.services.errors import DeletionFailed, NotScheduled, UserNotFound

logger = logging.getLogger(__name__)


def _revoke_admin(db: Session, user_id: str) -> None:
    db.query(Admin).filter(Admin.user_id == user_id).delete(synchronize_session=False)


def _purge_registrations(db: Session, user_id: str) -> None:
    db.query(Registration).filter(Registration.user_id == user_id).delete(synchronize_session=False)


def _clear_pending(db: Session, user_id: str) -> None:
    db.query(PendingDeletion).filter(PendingDeletion.user_id == user_id).delete(synchronize_session=False)


def _purge_reviews(db: Session, user_id: str) -> None:
    db.query(Review).filter(Review.user_id == user_id).delete(synchronize_session=False)


def _detach_activity_log(db: Session, user_id: str) -> None:
    db.query(ActivityLog).filter(ActivityLog.user_id == user_id).update(
        {ActivityLog.user_id: None}, synchronize_session=False
    )


def _has_due_ledger_row(db: Session, user_id: str, now: datetime) -> bool:
    return db.query(PendingDeletion.id).filter(
        PendingDeletion.user_id == user_id,
        PendingDeletion.deletion_date <= now,
    ).first() is not None


def delete_user_completely(
    db: Session,
    user_id: str,
    clock: Clock = system_clock,
    require_pending: bool = False,
) -> None:
    """Archive and erase ``user_id`` in one transaction.

    With ``require_pending`` the ledger row is re-read inside the transaction
    and ``NotScheduled`` is raised unless it still exists and is due. This
    covers rows another worker already consumed and rows rescheduled to a
    later date in the meantime.

    Raises:
        UserNotFound: the user row does not exist.
        NotScheduled: ``require_pending`` is set and there is no due ledger row.
        DeletionFailed: any other error occurred; nothing was changed.
    """
    now = clock.now()
    try:
        with atomic(db):
            user = db.query(User).filter(User.user_id == user_id).first()
            if user is None:
                raise UserNotFound(user_id)
            if require_pending and not _has_due_ledger_row(db, user_id, now):
                raise NotScheduled(user_id)

            db.add(build_archive_record(db, user, now))
            db.flush()
            _revoke_admin(db, user_id)
            _purge_registrations(db, user_id)
            _clear_pending(db, user_id)
            _purge_reviews(db, user_id)
            _detach_activity_log(db, user_id)
            db.query(User).filter(User.user_id == user_id).delete(synchronize_session=False)
    except (UserNotFound, NotScheduled):
        raise
    except Exception as exc:
        logger.error("Deletion of user %s rolled back: %r", user_id, exc)
        raise DeletionFailed(user_id, exc) from exc

    logger.info("User %s deleted and archived", user_id)
