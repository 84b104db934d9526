"""Pydantic schemas for Users."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class UserCreate(BaseModel):
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    preferred_language: str = "de"


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    preferred_language: Optional[str] = None


class UserOut(BaseModel):
    user_id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    preferred_language: str
    is_blocked: bool
    created_at: datetime

    model_config = {"from_attributes": True}
