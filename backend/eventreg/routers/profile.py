"""Profile routes: the current user's own account deletion."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from eventreg.clock import Clock
from eventreg.database import get_db
from eventreg.dependencies import client_ip, get_clock, get_current_user
from eventreg.models.user import User
from eventreg.schemas.gdpr import DeletionRequestOut, EligibilityOut
from eventreg.services import gdpr_service
from eventreg.services.errors import DeletionFailed

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/deletion-eligibility", response_model=EligibilityOut)
def deletion_eligibility(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Tell the user whether their account can be deleted right now."""
    return gdpr_service.evaluate_deletion_eligibility(db, user.user_id, clock)


@router.post("/delete", response_model=DeletionRequestOut)
def delete_profile(
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Delete the current user's account, or schedule it and block the account.

    Safe to retry after a failure: eligibility is evaluated afresh each time.
    """
    user_id = user.user_id
    try:
        result = gdpr_service.request_deletion(db, user_id, clock, client_ip(request))
    except DeletionFailed:
        logger.exception("Profile deletion failed for user %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete profile",
        )
    if result.immediate:
        logger.info("User %s deleted immediately", user_id)
    else:
        logger.info("User %s scheduled for deletion on %s", user_id, result.deletion_date)
    return result
