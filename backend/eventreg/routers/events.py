"""Event API routes."""
import logging
from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from eventreg.clock import localize
from eventreg.config import settings
from eventreg.database import get_db
from eventreg.models.event import Event, EventStatus
from eventreg.schemas.event import EventCreate, EventOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    """Create an event; the date is stored in UTC."""
    try:
        event_status = EventStatus(payload.status)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown event status '{payload.status}'")
    event = Event(
        title=payload.title,
        date=localize(payload.date, settings.APP_TIMEZONE),
        description=payload.description,
        location=payload.location,
        max_participants=payload.max_participants,
        status=event_status,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("Created event '%s' (%s) on %s", event.title, event.event_id, event.date)
    return event


@router.get("/", response_model=list[EventOut])
def list_events(
    start_after: Optional[datetime] = Query(None),
    start_before: Optional[datetime] = Query(None),
    include_cancelled: bool = Query(False),
    db: Session = Depends(get_db),
):
    """List events with optional date filters."""
    query = db.query(Event)
    if start_after:
        query = query.filter(Event.date >= localize(start_after, settings.APP_TIMEZONE))
    if start_before:
        query = query.filter(Event.date <= localize(start_before, settings.APP_TIMEZONE))
    if not include_cancelled:
        query = query.filter(Event.status != EventStatus.cancelled)
    return query.order_by(Event.date).all()


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, db: Session = Depends(get_db)):
    event = db.query(Event).filter(Event.event_id == event_id).first()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event
