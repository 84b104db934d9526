"""DeletedUserArchive ORM model.

Minimal record kept for reporting after an account is erased: names, the
original sign-up date, the deletion time and the events the user actually
attended. Rows are written once, by the deletion executor, and never touched
again.
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON
from eventreg.database import Base


class DeletedUserArchive(Base):
    __tablename__ = "deleted_users_archive"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    registered_at = Column(DateTime(timezone=True), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=False)
    # [{"eventId": ..., "title": ..., "date": ...}, ...]
    events_participated = Column(JSON, nullable=False, default=list)
