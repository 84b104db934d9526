"""Event ORM model."""
import uuid
import enum
from sqlalchemy import Column, String, Text, DateTime, Integer, Enum as SAEnum
from sqlalchemy.sql import func
from eventreg.database import Base


class EventStatus(str, enum.Enum):
    draft = "draft"
    active = "active"
    cancelled = "cancelled"


class Event(Base):
    __tablename__ = "events"

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(500), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False, index=True)  # UTC
    max_participants = Column(Integer, nullable=True)
    status = Column(SAEnum(EventStatus), nullable=False, default=EventStatus.active)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
