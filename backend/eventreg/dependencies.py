"""FastAPI dependency providers: clock, authenticated user, admin guard.

Authentication itself (passwords, tokens) happens upstream; by the time a
request reaches us the caller's id arrives in the ``X-User-Id`` header. The
one rule enforced here is that a blocked account cannot act: it is refused
with 403 and the attempt is recorded.
"""
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from eventreg.clock import Clock, system_clock
from eventreg.database import get_db
from eventreg.models.activity_log import ActivityAction
from eventreg.models.admin import Admin
from eventreg.models.user import User
from eventreg.services.activity_log_service import log_activity

logger = logging.getLogger(__name__)


def get_clock() -> Clock:
    """Overridden in tests to pin "now"."""
    return system_clock


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def get_current_user(
    request: Request,
    x_user_id: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> User:
    """Resolve the authenticated user; 401 if absent, 403 if blocked."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    user = db.query(User).filter(User.user_id == x_user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    if user.is_blocked:
        logger.warning("Refused blocked user %s", user.user_id)
        log_activity(
            db, user.user_id, ActivityAction.user_login_failed,
            {"reason": "account_blocked"}, client_ip(request), clock=clock,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is blocked pending deletion",
        )
    return user


def is_admin(db: Session, user_id: str) -> bool:
    return db.query(Admin.admin_id).filter(Admin.user_id == user_id).first() is not None


def require_admin(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    if not is_admin(db, user.user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin rights required")
    return user
