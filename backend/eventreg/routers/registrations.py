"""Registration API routes: the authenticated user signs up for events."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from eventreg.clock import Clock
from eventreg.database import get_db
from eventreg.dependencies import client_ip, get_clock, get_current_user
from eventreg.models.activity_log import ActivityAction
from eventreg.models.event import Event, EventStatus
from eventreg.models.registration import Registration
from eventreg.models.user import User
from eventreg.schemas.event import RegistrationCancelRequest, RegistrationCreate, RegistrationOut
from eventreg.services.activity_log_service import log_activity

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=RegistrationOut, status_code=status.HTTP_201_CREATED)
def register_for_event(
    payload: RegistrationCreate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Register the current user for an event.

    A previously cancelled registration is reactivated rather than duplicated.
    """
    event = db.query(Event).filter(Event.event_id == payload.event_id).first()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    if event.status != EventStatus.active:
        raise HTTPException(status_code=400, detail=f"Event is {event.status.value}")

    user_id = user.user_id
    registration = db.query(Registration).filter(
        Registration.user_id == user_id,
        Registration.event_id == event.event_id,
    ).first()
    if registration and registration.cancelled_at is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already registered for this event")

    if registration:
        registration.cancelled_at = None
        registration.cancellation_reason = None
        registration.registered_at = clock.now()
    else:
        registration = Registration(user_id=user_id, event_id=event.event_id, registered_at=clock.now())
        db.add(registration)
    db.commit()
    log_activity(
        db, user_id, ActivityAction.event_registered,
        {"event_id": event.event_id}, client_ip(request), clock=clock,
    )
    db.refresh(registration)
    logger.info("User %s registered for event %s", user_id, event.event_id)
    return registration


@router.post("/{registration_id}/cancel", response_model=RegistrationOut)
def cancel_registration(
    registration_id: str,
    payload: RegistrationCancelRequest,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Cancel one of the current user's registrations."""
    user_id = user.user_id
    registration = db.query(Registration).filter(Registration.registration_id == registration_id).first()
    if not registration or registration.user_id != user_id:
        raise HTTPException(status_code=404, detail="Registration not found")
    if registration.cancelled_at is not None:
        raise HTTPException(status_code=400, detail="Registration is already cancelled")

    registration.cancelled_at = clock.now()
    registration.cancellation_reason = payload.reason
    db.commit()
    log_activity(
        db, user_id, ActivityAction.event_registration_cancelled,
        {"event_id": registration.event_id, "reason": payload.reason}, client_ip(request), clock=clock,
    )
    db.refresh(registration)
    logger.info("User %s cancelled registration %s", user_id, registration_id)
    return registration
