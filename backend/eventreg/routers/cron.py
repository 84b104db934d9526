"""Endpoint for the external scheduler that drives the deletion sweep.

Protected by a shared secret: ``Authorization: Bearer <CRON_SECRET>``.
"""
import hmac
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from eventreg.clock import Clock
from eventreg.config import settings
from eventreg.database import get_db
from eventreg.dependencies import get_clock
from eventreg.schemas.gdpr import SweepResultOut
from eventreg.services import gdpr_service

logger = logging.getLogger(__name__)
router = APIRouter()


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header",
        )
    if not settings.CRON_SECRET:
        logger.error("CRON_SECRET is not configured")
        raise HTTPException(status_code=500, detail="Server configuration error")
    if not hmac.compare_digest(authorization[len("Bearer "):], settings.CRON_SECRET):
        logger.warning("Invalid cron secret presented")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authorization token")


@router.get("/delete-users", response_model=SweepResultOut, dependencies=[Depends(verify_cron_secret)])
def run_deletion_sweep(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    """Execute every scheduled deletion that is due."""
    logger.info("Starting scheduled user deletions")
    result = gdpr_service.run_due_deletions_sweep(db, clock, triggered_by="cron")
    logger.info("Scheduled deletions completed: %d deleted", result.deleted_count)
    return SweepResultOut(
        deleted_count=result.deleted_count,
        failed_count=result.failed_count,
        skipped_count=result.skipped_count,
        timestamp=clock.now(),
    )
