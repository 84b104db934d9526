"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from eventreg.config import settings
from eventreg.database import Base, engine
from eventreg.services.errors import (
    AlreadyEligible,
    AlreadyScheduled,
    DeletionFailed,
    NotScheduled,
    UserNotFound,
)

# Import routers
from eventreg.routers import users, events, registrations, profile, admin, cron

# Import all models so Base.metadata knows about them
from eventreg.models.user import User                              # noqa: F401
from eventreg.models.event import Event                            # noqa: F401
from eventreg.models.registration import Registration              # noqa: F401
from eventreg.models.admin import Admin                            # noqa: F401
from eventreg.models.review import Review                          # noqa: F401
from eventreg.models.pending_deletion import PendingDeletion       # noqa: F401
from eventreg.models.deleted_user_archive import DeletedUserArchive  # noqa: F401
from eventreg.models.activity_log import ActivityLog                # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Event Registration",
    description="Event registration backend with GDPR-compliant account deletion",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(registrations.router, prefix="/api/registrations", tags=["Registrations"])
app.include_router(profile.router, prefix="/api/profile", tags=["Profile"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(cron.router, prefix="/api/cron", tags=["Cron"])


@app.exception_handler(UserNotFound)
async def handle_user_not_found(_: Request, exc: UserNotFound):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(NotScheduled)
async def handle_not_scheduled(_: Request, exc: NotScheduled):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(AlreadyScheduled)
async def handle_already_scheduled(_: Request, exc: AlreadyScheduled):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(AlreadyEligible)
async def handle_already_eligible(_: Request, exc: AlreadyEligible):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(DeletionFailed)
async def handle_deletion_failed(_: Request, exc: DeletionFailed):
    logger.error("Unhandled deletion failure for user %s: %s", exc.user_id, exc.cause)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Failed to delete user"},
    )


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
