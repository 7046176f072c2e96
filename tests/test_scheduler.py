"""Retention purge tests."""
from datetime import datetime, timedelta, timezone

from conftest import make_admin
from sqlalchemy import func, select

from rms.core.scheduler import init_scheduler, purge_expired_records
from rms.models.audit import AuditAction, AuditLog
from rms.models.notification import Notification
from rms.services.notification import NotificationService


def test_purge_respects_retention_windows(db):
    user_id = make_admin()
    now = datetime.now(timezone.utc)
    db.add_all([
        AuditLog(action=AuditAction.USER_LOGIN, resource_type="user", created_at=now - timedelta(days=120)),
        AuditLog(action=AuditAction.USER_LOGIN, resource_type="user", created_at=now - timedelta(days=10)),
    ])
    notifications = NotificationService(db)
    old_read = notifications.create_notification(user_id, "Old", "read long ago")
    old_unread = notifications.create_notification(user_id, "Old", "never read")
    recent_read = notifications.create_notification(user_id, "New", "read yesterday")
    old_read.read_at = now - timedelta(days=45)
    recent_read.read_at = now - timedelta(days=1)
    db.flush()

    audit_deleted, notifications_deleted = purge_expired_records(db, now=now)
    assert audit_deleted == 1
    assert notifications_deleted == 1

    remaining = set(db.execute(select(Notification.id)).scalars().all())
    assert remaining == {old_unread.id, recent_read.id}
    assert db.execute(select(func.count()).select_from(AuditLog)).scalar() == 1


def test_scheduler_registers_daily_purge():
    scheduler = init_scheduler()
    job = scheduler.get_job("purge_expired_records")
    assert job is not None
    assert "hour='2'" in str(job.trigger)
