"""User API routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from eventreg.clock import Clock
from eventreg.database import get_db
from eventreg.dependencies import client_ip, get_clock
from eventreg.models.activity_log import ActivityAction
from eventreg.models.user import User
from eventreg.schemas.user import UserCreate, UserUpdate, UserOut
from eventreg.services.activity_log_service import log_activity

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Create a new user account."""
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    user = User(**payload.model_dump())
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s (%s)", user.user_id, user.email)
    log_activity(db, user.user_id, ActivityAction.user_registered, None, client_ip(request), clock=clock)
    return user


@router.get("/", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)):
    """List all users."""
    return db.query(User).order_by(User.created_at).all()


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    """Fetch a single user by ID."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    payload: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Update profile fields (partial update)."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(user, field, value)
    db.commit()
    log_activity(
        db, user_id, ActivityAction.profile_updated,
        {"fields": sorted(changes)}, client_ip(request), clock=clock,
    )
    db.refresh(user)
    logger.info("Updated user %s", user_id)
    return user
