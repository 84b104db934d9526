"""Tests for the scheduled-deletion sweep.

Covers:
- Only due rows are processed
- A failing user does not stop the others, and stays pending for a retry
- Re-running a clean sweep is a no-op
- Rows consumed or rescheduled by someone else in the meantime are skipped
"""
from datetime import timedelta
from types import SimpleNamespace

from sqlalchemy.exc import OperationalError

from eventreg.models.activity_log import ActivityLog, ActivityAction
from eventreg.models.deleted_user_archive import DeletedUserArchive
from eventreg.models.pending_deletion import PendingDeletion
from eventreg.models.user import User
from eventreg.services import deletion_service, sweep_service
from eventreg.services.deletion_service import delete_user_completely
from eventreg.services.errors import DeletionFailed
from eventreg.services.scheduling_service import schedule
from eventreg.services.sweep_service import process_due
from tests.conftest import NOW, make_event, make_user, register


def _scheduled_user(db, clock, days: int = 1, **kwargs) -> str:
    user = make_user(db, **kwargs)
    register(db, user, make_event(db, days_from_now=days))
    user_id = user.user_id
    schedule(db, user_id, clock)
    return user_id


def _exists(db, user_id: str) -> bool:
    return db.query(User.user_id).filter(User.user_id == user_id).first() is not None


class TestProcessDue:

    def test_nothing_due(self, db, clock):
        _scheduled_user(db, clock, days=5)
        result = process_due(db, clock)
        assert result.deleted_count == 0
        assert db.query(PendingDeletion).count() == 1

    def test_due_users_are_deleted_and_archived(self, db, clock):
        due = _scheduled_user(db, clock, days=1, first_name="Due")
        later = _scheduled_user(db, clock, days=20, first_name="Later")

        clock.advance(days=30)
        result = process_due(db, clock)

        assert result.deleted_count == 1
        assert not _exists(db, due)
        assert _exists(db, later)
        assert db.query(PendingDeletion).filter(PendingDeletion.user_id == later).count() == 1
        archive = db.query(DeletedUserArchive).one()
        assert archive.first_name == "Due"
        assert len(archive.events_participated) == 1

    def test_deletion_date_equal_to_now_is_due(self, db, clock):
        user_id = _scheduled_user(db, clock, days=1)
        clock.set(NOW + timedelta(days=29))
        assert process_due(db, clock).deleted_count == 1
        assert not _exists(db, user_id)

    def test_success_is_logged_as_automated(self, db, clock):
        user_id = _scheduled_user(db, clock, days=1)
        clock.advance(days=40)
        process_due(db, clock, triggered_by="cron")

        entry = db.query(ActivityLog).filter(
            ActivityLog.action_type == ActivityAction.scheduled_deletion_executed
        ).one()
        assert entry.user_id is None
        assert entry.details["deleted_user_id"] == user_id
        assert entry.details["automated"] is True
        assert entry.details["triggered_by"] == "cron"


class TestPartialFailure:

    def test_one_failure_does_not_block_the_rest(self, db, clock, monkeypatch):
        first = _scheduled_user(db, clock, days=1, first_name="First")
        second = _scheduled_user(db, clock, days=2, first_name="Second")
        third = _scheduled_user(db, clock, days=3, first_name="Third")
        before = db.query(PendingDeletion).filter(PendingDeletion.user_id == second).one()
        before_id, before_date = before.id, before.deletion_date

        def _flaky(db, user_id, clock, require_pending=False):
            if user_id == second:
                raise DeletionFailed(user_id, OperationalError("DELETE", {}, Exception("locked")))
            return delete_user_completely(db, user_id, clock, require_pending=require_pending)

        monkeypatch.setattr(sweep_service, "delete_user_completely", _flaky)
        clock.advance(days=60)

        result = process_due(db, clock)

        assert result.deleted_count == 2
        assert result.failed_count == 1
        assert not _exists(db, first)
        assert not _exists(db, third)
        assert _exists(db, second)
        after = db.query(PendingDeletion).filter(PendingDeletion.user_id == second).one()
        assert (after.id, after.deletion_date) == (before_id, before_date)

        failure = db.query(ActivityLog).filter(
            ActivityLog.action_type == ActivityAction.profile_deletion_failed
        ).one()
        assert failure.user_id == second
        assert failure.details["reason"] == "scheduled_deletion_error"

    def test_failed_row_is_retried_on_next_sweep(self, db, clock, monkeypatch):
        user_id = _scheduled_user(db, clock, days=1)

        def _always_fail(db, user_id, clock, require_pending=False):
            raise DeletionFailed(user_id, OperationalError("DELETE", {}, Exception("locked")))

        monkeypatch.setattr(sweep_service, "delete_user_completely", _always_fail)
        clock.advance(days=60)
        assert process_due(db, clock).deleted_count == 0

        monkeypatch.undo()
        assert process_due(db, clock).deleted_count == 1
        assert not _exists(db, user_id)

    def test_unexpected_error_for_one_user_does_not_abort_the_sweep(self, db, clock, monkeypatch):
        first = _scheduled_user(db, clock, days=1, first_name="First")
        second = _scheduled_user(db, clock, days=2, first_name="Second")
        third = _scheduled_user(db, clock, days=3, first_name="Third")
        purge = deletion_service._purge_registrations

        def _bad_row(db, user_id):
            if user_id == second:
                raise ValueError("bad row")
            purge(db, user_id)

        monkeypatch.setattr(deletion_service, "_purge_registrations", _bad_row)
        clock.advance(days=60)

        result = process_due(db, clock)

        assert (result.deleted_count, result.failed_count) == (2, 1)
        assert not _exists(db, first)
        assert not _exists(db, third)
        assert _exists(db, second)
        assert db.query(PendingDeletion).filter(PendingDeletion.user_id == second).count() == 1
        assert db.query(DeletedUserArchive).count() == 2
        failure = db.query(ActivityLog).filter(
            ActivityLog.action_type == ActivityAction.profile_deletion_failed
        ).one()
        assert failure.user_id == second
        assert failure.details["error"] == "bad row"


class TestIdempotence:

    def test_second_run_finds_nothing(self, db, clock):
        _scheduled_user(db, clock, days=1)
        _scheduled_user(db, clock, days=2)
        clock.advance(days=60)

        assert process_due(db, clock).deleted_count == 2
        again = process_due(db, clock)
        assert again.deleted_count == 0
        assert db.query(DeletedUserArchive).count() == 2

    def test_row_consumed_concurrently_is_skipped(self, db, clock, monkeypatch):
        ghost_id = make_user(db, first_name="Ghost").user_id
        stale = [SimpleNamespace(user_id=ghost_id, deletion_date=NOW)]
        monkeypatch.setattr(sweep_service, "find_due", lambda db, clock: stale)

        result = process_due(db, clock)

        assert result.deleted_count == 0
        assert result.skipped_count == 1
        assert _exists(db, ghost_id)
        assert db.query(DeletedUserArchive).count() == 0

    def test_row_rescheduled_to_later_date_is_skipped(self, db, clock, monkeypatch):
        """A row read as due but pushed back before the transaction is left alone."""
        user_id = _scheduled_user(db, clock, days=20)
        stale = [SimpleNamespace(user_id=user_id, deletion_date=NOW - timedelta(days=1))]
        monkeypatch.setattr(sweep_service, "find_due", lambda db, clock: stale)

        result = process_due(db, clock)

        assert result.deleted_count == 0
        assert result.skipped_count == 1
        assert _exists(db, user_id)
        assert db.query(PendingDeletion).filter(PendingDeletion.user_id == user_id).count() == 1
