"""ActivityLog ORM model: append-only audit trail."""
import enum
from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey, Enum as SAEnum
from eventreg.database import Base


class ActivityAction(str, enum.Enum):
    user_registered = "user_registered"
    user_login_failed = "user_login_failed"
    event_registered = "event_registered"
    event_registration_cancelled = "event_registration_cancelled"
    profile_updated = "profile_updated"
    profile_deleted_immediate = "profile_deleted_immediate"
    profile_deletion_scheduled = "profile_deletion_scheduled"
    profile_deletion_cancelled = "profile_deletion_cancelled"
    profile_deletion_failed = "profile_deletion_failed"
    scheduled_deletion_executed = "scheduled_deletion_executed"
    admin_delete_user = "admin_delete_user"
    system_cron_deletion = "system_cron_deletion"


class ActivityLog(Base):
    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Detached (set NULL), not cascaded, when the user is deleted.
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True, index=True)
    action_type = Column(SAEnum(ActivityAction), nullable=False)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
