"""Database engine, session factory and unit-of-work helper."""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from eventreg.config import settings

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    """SQLite ignores FOREIGN KEY clauses unless asked per connection."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if settings.DATABASE_URL.startswith("sqlite"):
    event.listen(engine, "connect", enable_sqlite_foreign_keys)


def get_db() -> Iterator[Session]:
    """FastAPI dependency: one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Run a block of writes as one unit: commit all of them or none.

    Any exception raised inside the block rolls the session back and is
    re-raised unchanged. There is no retry.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
