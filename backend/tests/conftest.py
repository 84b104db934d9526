"""Pytest fixtures: a fresh SQLite database and a frozen clock per test."""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from eventreg.clock import FrozenClock
from eventreg.database import Base, enable_sqlite_foreign_keys, get_db
from eventreg.dependencies import get_clock
from eventreg.main import app

# Import all models so they register with Base.metadata
from eventreg.models.user import User
from eventreg.models.event import Event, EventStatus
from eventreg.models.registration import Registration
from eventreg.models.admin import Admin
from eventreg.models.review import Review                          # noqa: F401
from eventreg.models.pending_deletion import PendingDeletion       # noqa: F401
from eventreg.models.deleted_user_archive import DeletedUserArchive  # noqa: F401
from eventreg.models.activity_log import ActivityLog                # noqa: F401

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    event.listen(engine, "connect", enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def clock():
    """A clock pinned to NOW; tests move it explicitly."""
    return FrozenClock(NOW)


@pytest.fixture(scope="function")
def client(session_factory, clock):
    """FastAPI TestClient with database and clock dependencies overridden."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: build rows directly, or go through the API
# ---------------------------------------------------------------------------
def make_user(db, first_name: str = "Anna", last_name: str = "Schmidt",
              email: Optional[str] = None, created_at: Optional[datetime] = None) -> User:
    """Insert a user row and return it."""
    user = User(
        email=email or f"{uuid.uuid4().hex[:8]}@example.org",
        first_name=first_name,
        last_name=last_name,
        created_at=created_at or NOW - timedelta(days=365),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_event(db, title: str = "Sommerfest", date: Optional[datetime] = None,
               days_from_now: Optional[float] = None) -> Event:
    """Insert an event row; ``days_from_now`` is relative to NOW."""
    if date is None:
        date = NOW + timedelta(days=days_from_now or 0)
    ev = Event(title=title, date=date, status=EventStatus.active)
    db.add(ev)
    db.commit()
    db.refresh(ev)
    return ev


def register(db, user: User, ev: Event, cancelled: bool = False) -> Registration:
    """Insert a registration, optionally already cancelled."""
    reg = Registration(
        user_id=user.user_id,
        event_id=ev.event_id,
        registered_at=NOW - timedelta(days=60),
        cancelled_at=NOW - timedelta(days=30) if cancelled else None,
    )
    db.add(reg)
    db.commit()
    db.refresh(reg)
    return reg


def grant_admin(db, user: User) -> Admin:
    admin = Admin(user_id=user.user_id)
    db.add(admin)
    db.commit()
    return admin


def auth(user_id: str) -> dict:
    """Request headers identifying the caller."""
    return {"X-User-Id": user_id}


def create_test_user(client: TestClient, first_name: str = "Test", last_name: str = "User",
                     email: Optional[str] = None) -> dict:
    """Helper: POST /api/users and return response JSON."""
    resp = client.post("/api/users/", json={
        "email": email or f"{uuid.uuid4().hex[:8]}@example.org",
        "first_name": first_name,
        "last_name": last_name,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_event(client: TestClient, title: str = "Test Event", date: Optional[datetime] = None) -> dict:
    """Helper: POST /api/events and return response JSON."""
    resp = client.post("/api/events/", json={
        "title": title,
        "date": (date or NOW + timedelta(days=10)).isoformat(),
    })
    assert resp.status_code == 201, resp.text
    return resp.json()
