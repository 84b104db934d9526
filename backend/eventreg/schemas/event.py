"""Pydantic schemas for Events and Registrations."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class EventCreate(BaseModel):
    title: str
    date: datetime  # naive values are local to APP_TIMEZONE
    description: Optional[str] = None
    location: Optional[str] = None
    max_participants: Optional[int] = None
    status: str = "active"


class EventOut(BaseModel):
    event_id: str
    title: str
    date: datetime
    description: Optional[str] = None
    location: Optional[str] = None
    max_participants: Optional[int] = None
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class RegistrationCreate(BaseModel):
    event_id: str


class RegistrationCancelRequest(BaseModel):
    reason: Optional[str] = None


class RegistrationOut(BaseModel):
    registration_id: str
    user_id: str
    event_id: str
    registered_at: datetime
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    model_config = {"from_attributes": True}
