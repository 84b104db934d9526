"""Pydantic schemas for the account deletion endpoints."""
from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel


class EligibilityOut(BaseModel):
    can_delete: bool
    reason: Optional[str] = None
    delete_date: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DeletionRequestOut(BaseModel):
    immediate: bool
    deletion_date: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PendingDeletionOut(BaseModel):
    id: int
    user_id: str
    deletion_date: datetime
    created_at: datetime
    user_email: str
    user_first_name: str
    user_last_name: str
    anchor_event_date: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SweepResultOut(BaseModel):
    deleted_count: int
    failed_count: int = 0
    skipped_count: int = 0
    timestamp: datetime

    model_config = {"from_attributes": True}


class ArchivedUserOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    registered_at: Optional[datetime] = None
    deleted_at: datetime
    events_participated: list[dict[str, Any]] = []

    model_config = {"from_attributes": True}
