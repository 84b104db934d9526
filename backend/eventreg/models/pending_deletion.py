"""PendingDeletion ORM model: the scheduling ledger, at most one row per user."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from eventreg.database import Base


class PendingDeletion(Base):
    __tablename__ = "pending_deletions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, unique=True)
    deletion_date = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User")
