"""Command-line entry points for operators.

``eventreg sweep`` is meant for a crontab line (e.g. ``0 2 * * *``) on hosts
where the HTTP cron endpoint is not used.
"""
from __future__ import annotations
import argparse
import logging
import sys
from typing import Sequence

from eventreg.config import settings
from eventreg.database import Base, SessionLocal, engine
from eventreg.models.admin import Admin
from eventreg.models.user import User
from eventreg.services import gdpr_service

# Register remaining tables with Base.metadata
from eventreg.models.event import Event                            # noqa: F401
from eventreg.models.registration import Registration              # noqa: F401
from eventreg.models.review import Review                          # noqa: F401
from eventreg.models.pending_deletion import PendingDeletion       # noqa: F401
from eventreg.models.deleted_user_archive import DeletedUserArchive  # noqa: F401
from eventreg.models.activity_log import ActivityLog                # noqa: F401

logger = logging.getLogger("eventreg.cli")


def _cmd_sweep(args: argparse.Namespace) -> int:
    db = SessionLocal()
    try:
        result = gdpr_service.run_due_deletions_sweep(db, triggered_by=args.triggered_by)
    finally:
        db.close()
    print(
        f"deleted={result.deleted_count} failed={result.failed_count} "
        f"skipped={result.skipped_count}"
    )
    return 1 if result.failed_count else 0


def _cmd_grant_admin(args: argparse.Namespace) -> int:
    db = SessionLocal()
    try:
        if not db.query(User.user_id).filter(User.user_id == args.user_id).first():
            print(f"User {args.user_id} not found", file=sys.stderr)
            return 1
        if db.query(Admin.admin_id).filter(Admin.user_id == args.user_id).first():
            print(f"User {args.user_id} is already an admin")
            return 0
        db.add(Admin(user_id=args.user_id, created_by=args.granted_by))
        db.commit()
    finally:
        db.close()
    logger.info("Granted admin rights to %s", args.user_id)
    print(f"Granted admin rights to {args.user_id}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="eventreg", description="Event registration operator tools")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="Logging level (default: %(default)s)")
    sub = parser.add_subparsers(dest="command", required=True)

    sweep = sub.add_parser("sweep", help="Execute all due scheduled account deletions")
    sweep.add_argument("--triggered-by", default="cron", help="Recorded in the activity log")
    sweep.set_defaults(func=_cmd_sweep)

    grant = sub.add_parser("grant-admin", help="Give a user admin rights")
    grant.add_argument("user_id")
    grant.add_argument("--granted-by", default=None, help="User id of the granting admin")
    grant.set_defaults(func=_cmd_grant_admin)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
