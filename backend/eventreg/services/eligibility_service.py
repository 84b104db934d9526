"""Deletion eligibility: decides whether an account may be erased now.

A user's *anchor* event is the soonest upcoming event among their
non-cancelled registrations or, when nothing is upcoming, the most recent past
one. Deletion is allowed once the anchor lies at least the retention window
in the past, or when there is no anchor at all. Otherwise the earliest
permitted deletion date is ``anchor + retention``.

Everything here is a pure read.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from eventreg.clock import Clock, as_utc, system_clock
from eventreg.config import settings
from eventreg.models.event import Event
from eventreg.models.registration import Registration
from eventreg.models.user import User
from eventreg.services.errors import UserNotFound


@dataclass(frozen=True)
class EligibilityResult:
    can_delete: bool
    reason: Optional[str] = None
    delete_date: Optional[datetime] = None


def retention_window() -> timedelta:
    return timedelta(days=settings.GDPR_RETENTION_DAYS)


def active_event_dates(db: Session, user_id: str) -> list[datetime]:
    """Dates (UTC) of all events the user holds a non-cancelled registration for."""
    rows = (
        db.query(Event.date)
        .join(Registration, Registration.event_id == Event.event_id)
        .filter(
            Registration.user_id == user_id,
            Registration.cancelled_at.is_(None),
        )
        .all()
    )
    return [as_utc(row.date) for row in rows]


def find_anchor_date(dates: list[datetime], now: datetime) -> Optional[datetime]:
    """Soonest date after ``now``; failing that, the latest date at or before it."""
    upcoming = [d for d in dates if d > now]
    if upcoming:
        return min(upcoming)
    if dates:
        return max(dates)
    return None


def evaluate(db: Session, user_id: str, clock: Clock = system_clock) -> EligibilityResult:
    """Decide whether ``user_id`` can be deleted right now."""
    if db.query(User.user_id).filter(User.user_id == user_id).first() is None:
        raise UserNotFound(user_id)

    now = clock.now()
    anchor = find_anchor_date(active_event_dates(db, user_id), now)
    if anchor is None:
        return EligibilityResult(can_delete=True)

    window = retention_window()
    if anchor > now:
        return EligibilityResult(
            can_delete=False,
            reason="User has upcoming events",
            delete_date=anchor + window,
        )

    elapsed = now - anchor
    if elapsed >= window:
        return EligibilityResult(can_delete=True)

    return EligibilityResult(
        can_delete=False,
        reason=(
            f"Only {elapsed.days} days passed since last event "
            f"(required: {settings.GDPR_RETENTION_DAYS})"
        ),
        delete_date=anchor + window,
    )
