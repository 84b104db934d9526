"""Scheduling ledger: deferred deletions, at most one per user.

Scheduling blocks the account in the same transaction that writes the ledger
row, so a pending deletion always implies ``users.is_blocked``. Cancelling
reverses both together.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eventreg.clock import Clock, as_utc, system_clock
from eventreg.database import atomic
from eventreg.models.pending_deletion import PendingDeletion
from eventreg.models.user import User
from eventreg.services import eligibility_service
from eventreg.services.errors import AlreadyEligible, AlreadyScheduled, NotScheduled, UserNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingDeletionWithUser:
    id: int
    user_id: str
    deletion_date: datetime
    created_at: datetime
    user_email: str
    user_first_name: str
    user_last_name: str
    anchor_event_date: Optional[datetime]


def _find_pending(db: Session, user_id: str) -> Optional[PendingDeletion]:
    return db.query(PendingDeletion).filter(PendingDeletion.user_id == user_id).first()


def schedule(db: Session, user_id: str, clock: Clock = system_clock) -> datetime:
    """Register a deferred deletion for ``user_id`` and block the account.

    Returns the deletion date.

    Raises:
        UserNotFound: unknown user, or the user was deleted concurrently.
        AlreadyEligible: the user could be deleted right away.
        AlreadyScheduled: a ledger row already exists, including when a
            concurrent request wins the unique constraint on ``user_id``.
    """
    eligibility = eligibility_service.evaluate(db, user_id, clock)
    if eligibility.can_delete:
        raise AlreadyEligible(user_id)
    if _find_pending(db, user_id) is not None:
        raise AlreadyScheduled(user_id)

    try:
        with atomic(db):
            db.add(PendingDeletion(
                user_id=user_id,
                deletion_date=eligibility.delete_date,
                created_at=clock.now(),
            ))
            db.query(User).filter(User.user_id == user_id).update(
                {User.is_blocked: True}, synchronize_session=False
            )
    except IntegrityError as exc:
        # Only a competing ledger row means "already scheduled"; a vanished
        # user trips the foreign key instead.
        if db.query(PendingDeletion.id).filter(PendingDeletion.user_id == user_id).first() is not None:
            raise AlreadyScheduled(user_id) from exc
        if db.query(User.user_id).filter(User.user_id == user_id).first() is None:
            raise UserNotFound(user_id) from exc
        raise

    logger.info("Scheduled deletion of user %s for %s", user_id, eligibility.delete_date.isoformat())
    return eligibility.delete_date


def cancel(db: Session, user_id: str) -> None:
    """Drop the ledger row for ``user_id`` and unblock the account."""
    with atomic(db):
        removed = (
            db.query(PendingDeletion)
            .filter(PendingDeletion.user_id == user_id)
            .delete(synchronize_session=False)
        )
        if not removed:
            raise NotScheduled(user_id)
        db.query(User).filter(User.user_id == user_id).update(
            {User.is_blocked: False}, synchronize_session=False
        )
    logger.info("Cancelled scheduled deletion of user %s", user_id)


def list_pending(db: Session, clock: Clock = system_clock) -> list[PendingDeletionWithUser]:
    """All ledger rows with contact details and anchor date, soonest deletion first."""
    now = clock.now()
    rows = (
        db.query(PendingDeletion, User)
        .join(User, User.user_id == PendingDeletion.user_id)
        .order_by(PendingDeletion.deletion_date.asc())
        .all()
    )
    result = []
    for pending, user in rows:
        dates = eligibility_service.active_event_dates(db, user.user_id)
        result.append(PendingDeletionWithUser(
            id=pending.id,
            user_id=user.user_id,
            deletion_date=as_utc(pending.deletion_date),
            created_at=as_utc(pending.created_at),
            user_email=user.email,
            user_first_name=user.first_name,
            user_last_name=user.last_name,
            anchor_event_date=eligibility_service.find_anchor_date(dates, now),
        ))
    return result
