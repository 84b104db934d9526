"""Archival writer: the minimal record retained after an account is erased.

Only events the user actually attended are kept: the registration was not
cancelled and the event had already taken place at deletion time.
"""
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from eventreg.clock import as_utc
from eventreg.models.deleted_user_archive import DeletedUserArchive
from eventreg.models.event import Event
from eventreg.models.registration import Registration
from eventreg.models.user import User


def attended_events(db: Session, user_id: str, now: datetime) -> list[dict[str, Any]]:
    """Serialize the user's attended events as ``[{eventId, title, date}]``, newest first."""
    rows = (
        db.query(Event.event_id, Event.title, Event.date)
        .join(Registration, Registration.event_id == Event.event_id)
        .filter(
            Registration.user_id == user_id,
            Registration.cancelled_at.is_(None),
            Event.date <= now,
        )
        .order_by(Event.date.desc())
        .all()
    )
    return [
        {"eventId": row.event_id, "title": row.title, "date": as_utc(row.date).isoformat()}
        for row in rows
    ]


def build_archive_record(db: Session, user: User, now: datetime) -> DeletedUserArchive:
    """Build (but do not add or commit) the archive row for ``user``.

    The caller adds it to the same unit of work as the deletion itself.
    """
    return DeletedUserArchive(
        first_name=user.first_name,
        last_name=user.last_name,
        registered_at=user.created_at,
        deleted_at=now,
        events_participated=attended_events(db, user.user_id, now),
    )
