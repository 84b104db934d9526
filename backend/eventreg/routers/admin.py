"""Admin routes: oversight of pending deletions, forced deletion, archive."""
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from eventreg.clock import Clock
from eventreg.database import get_db
from eventreg.dependencies import client_ip, get_clock, is_admin, require_admin
from eventreg.models.activity_log import ActivityAction
from eventreg.models.deleted_user_archive import DeletedUserArchive
from eventreg.models.user import User
from eventreg.schemas.gdpr import ArchivedUserOut, PendingDeletionOut, SweepResultOut
from eventreg.services import gdpr_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/pending-deletions", response_model=list[PendingDeletionOut])
def list_pending_deletions(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """All scheduled deletions, soonest first."""
    return gdpr_service.list_pending_deletions(db, clock)


@router.delete("/pending-deletions/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_pending_deletion(
    user_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Cancel a scheduled deletion and unblock the account."""
    gdpr_service.cancel_scheduled_deletion(
        db, user_id, clock, client_ip(request), cancelled_by=admin.user_id,
    )


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Erase a user immediately, bypassing the retention window.

    Admins cannot delete themselves or another admin; revoke the rights first.
    """
    admin_id = admin.user_id
    if user_id == admin_id:
        raise HTTPException(status_code=400, detail="Cannot delete yourself")
    if not db.query(User.user_id).filter(User.user_id == user_id).first():
        raise HTTPException(status_code=404, detail="User not found")
    if is_admin(db, user_id):
        raise HTTPException(status_code=400, detail="Cannot delete an administrator; revoke admin rights first")

    gdpr_service.delete_now(
        db, user_id, ActivityAction.admin_delete_user, clock, client_ip(request),
        extra={"admin_id": admin_id},
    )
    logger.info("Admin %s deleted user %s", admin_id, user_id)


@router.get("/deleted-users", response_model=list[ArchivedUserOut])
def list_deleted_users(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Read the archive of deleted accounts, newest first."""
    return db.query(DeletedUserArchive).order_by(DeletedUserArchive.deleted_at.desc()).all()


@router.post("/cron/trigger-delete", response_model=SweepResultOut)
def trigger_deletion_sweep(
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Run the scheduled-deletion sweep now instead of waiting for cron."""
    admin_id = admin.user_id
    logger.info("Manual deletion sweep triggered by admin %s", admin_id)
    result = gdpr_service.run_due_deletions_sweep(
        db, clock, triggered_by="manual_admin", actor_user_id=admin_id, ip_address=client_ip(request),
    )
    return SweepResultOut(
        deleted_count=result.deleted_count,
        failed_count=result.failed_count,
        skipped_count=result.skipped_count,
        timestamp=clock.now(),
    )
