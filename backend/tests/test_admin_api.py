"""Tests for the admin endpoints: pending deletions, forced deletion, archive, manual sweep."""
from datetime import timedelta

from eventreg.models.activity_log import ActivityLog, ActivityAction
from eventreg.models.deleted_user_archive import DeletedUserArchive
from eventreg.models.pending_deletion import PendingDeletion
from eventreg.models.user import User
from eventreg.services.scheduling_service import schedule
from tests.conftest import auth, grant_admin, make_event, make_user, register


def _admin(db) -> str:
    admin = make_user(db, "Ada", "Admin", email="admin@example.org")
    grant_admin(db, admin)
    return admin.user_id


def _scheduled(db, clock, days: int = 10, **kwargs) -> str:
    user = make_user(db, **kwargs)
    register(db, user, make_event(db, days_from_now=days))
    user_id = user.user_id
    schedule(db, user_id, clock)
    return user_id


class TestAdminGuard:

    def test_non_admin_is_forbidden(self, client, db):
        user_id = make_user(db).user_id
        assert client.get("/api/admin/pending-deletions", headers=auth(user_id)).status_code == 403
        assert client.post("/api/admin/cron/trigger-delete", headers=auth(user_id)).status_code == 403

    def test_anonymous_is_unauthorized(self, client):
        assert client.get("/api/admin/pending-deletions").status_code == 401


class TestPendingDeletions:

    def test_list(self, client, db, clock):
        admin_id = _admin(db)
        late = _scheduled(db, clock, days=30, first_name="Late")
        soon = _scheduled(db, clock, days=3, first_name="Soon")

        resp = client.get("/api/admin/pending-deletions", headers=auth(admin_id))

        assert resp.status_code == 200
        rows = resp.json()
        assert [r["user_id"] for r in rows] == [soon, late]
        assert rows[0]["user_first_name"] == "Soon"
        assert rows[0]["anchor_event_date"] is not None

    def test_cancel(self, client, db, clock):
        admin_id = _admin(db)
        user_id = _scheduled(db, clock)

        resp = client.delete(f"/api/admin/pending-deletions/{user_id}", headers=auth(admin_id))

        assert resp.status_code == 204
        assert db.query(PendingDeletion).count() == 0
        assert db.query(User.is_blocked).filter(User.user_id == user_id).scalar() is False
        entry = db.query(ActivityLog).filter(
            ActivityLog.action_type == ActivityAction.profile_deletion_cancelled
        ).one()
        assert entry.details == {"cancelled_by": admin_id}

    def test_cancel_when_nothing_pending(self, client, db):
        admin_id = _admin(db)
        user_id = make_user(db).user_id
        resp = client.delete(f"/api/admin/pending-deletions/{user_id}", headers=auth(admin_id))
        assert resp.status_code == 404


class TestForcedDeletion:

    def test_admin_deletes_user_inside_retention_window(self, client, db, clock):
        admin_id = _admin(db)
        user_id = _scheduled(db, clock, days=10)

        resp = client.delete(f"/api/admin/users/{user_id}", headers=auth(admin_id))

        assert resp.status_code == 204
        assert db.query(User).filter(User.user_id == user_id).count() == 0
        assert db.query(PendingDeletion).count() == 0
        assert db.query(DeletedUserArchive).count() == 1
        entry = db.query(ActivityLog).filter(
            ActivityLog.action_type == ActivityAction.admin_delete_user
        ).one()
        assert entry.details["admin_id"] == admin_id
        assert entry.details["deleted_user_id"] == user_id

    def test_cannot_delete_self(self, client, db):
        admin_id = _admin(db)
        resp = client.delete(f"/api/admin/users/{admin_id}", headers=auth(admin_id))
        assert resp.status_code == 400

    def test_cannot_delete_another_admin(self, client, db):
        admin_id = _admin(db)
        other = make_user(db, "Other", "Admin")
        grant_admin(db, other)
        resp = client.delete(f"/api/admin/users/{other.user_id}", headers=auth(admin_id))
        assert resp.status_code == 400

    def test_unknown_user(self, client, db):
        admin_id = _admin(db)
        resp = client.delete("/api/admin/users/00000000-0000-0000-0000-000000000000", headers=auth(admin_id))
        assert resp.status_code == 404


class TestArchiveAndSweep:

    def test_manual_sweep(self, client, db, clock):
        admin_id = _admin(db)
        due = _scheduled(db, clock, days=1)
        _scheduled(db, clock, days=60)
        clock.advance(days=30)

        resp = client.post("/api/admin/cron/trigger-delete", headers=auth(admin_id))

        assert resp.status_code == 200
        data = resp.json()
        assert data["deleted_count"] == 1
        assert data["failed_count"] == 0
        assert db.query(User).filter(User.user_id == due).count() == 0
        summary = db.query(ActivityLog).filter(
            ActivityLog.action_type == ActivityAction.system_cron_deletion
        ).one()
        assert summary.user_id == admin_id
        assert summary.details["triggered_by"] == "manual_admin"

    def test_deleted_users_listing(self, client, db, clock):
        admin_id = _admin(db)
        user_id = make_user(db, "Gone", "Person").user_id
        client.delete(f"/api/admin/users/{user_id}", headers=auth(admin_id))

        resp = client.get("/api/admin/deleted-users", headers=auth(admin_id))

        assert resp.status_code == 200
        rows = resp.json()
        assert len(rows) == 1
        assert rows[0]["first_name"] == "Gone"
        assert rows[0]["events_participated"] == []
