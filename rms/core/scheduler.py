"""APScheduler configuration for retention jobs."""

import logging
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy import delete
from sqlalchemy.orm import Session

from rms.core.config import settings
from rms.core.database import SessionLocal
from rms.models.audit import AuditLog
from rms.models.notification import Notification

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


def get_db_session() -> Session:
    """Get a database session for scheduler jobs."""
    return SessionLocal()


def purge_expired_records(db: Session, now: datetime | None = None) -> tuple[int, int]:
    """Delete audit entries and read notifications past their retention.

    Returns ``(audit_deleted, notifications_deleted)``. Unread
    notifications are kept regardless of age.
    """
    now = now or datetime.now(timezone.utc)
    audit_cutoff = now - timedelta(days=settings.AUDIT_RETENTION_DAYS)
    notification_cutoff = now - timedelta(days=settings.NOTIFICATION_RETENTION_DAYS)

    audit_deleted = db.execute(
        delete(AuditLog)
        .where(AuditLog.created_at < audit_cutoff)
        .execution_options(synchronize_session=False)
    ).rowcount or 0
    notifications_deleted = db.execute(
        delete(Notification)
        .where(Notification.read_at.is_not(None), Notification.read_at < notification_cutoff)
        .execution_options(synchronize_session=False)
    ).rowcount or 0
    return audit_deleted, notifications_deleted


def purge_expired_records_job():
    """
    Job to enforce retention windows.
    Runs at 02:00 every day.
    """
    logger.info("Starting retention purge job")

    db = get_db_session()
    try:
        audit_deleted, notifications_deleted = purge_expired_records(db)
        db.commit()
        logger.info(f"Purged {audit_deleted} audit entries and {notifications_deleted} notifications")
    except Exception as e:
        logger.exception(f"Error purging expired records: {e}")
        db.rollback()
    finally:
        db.close()


def init_scheduler() -> AsyncIOScheduler:
    """Initialize and configure the scheduler."""
    global scheduler

    scheduler = AsyncIOScheduler(
        timezone=settings.SCHEDULER_TIMEZONE,
        job_defaults={
            "coalesce": True,  # Combine missed runs
            "max_instances": 1,  # Only one instance of each job at a time
            "misfire_grace_time": 3600,  # Allow 1 hour grace period for missed jobs
        }
    )

    scheduler.add_job(
        purge_expired_records_job,
        trigger=CronTrigger(hour=2, minute=0),
        id="purge_expired_records",
        name="Purge expired audit entries and notifications",
        replace_existing=True,
    )

    logger.info(f"Scheduler initialized with retention purge job ({settings.SCHEDULER_TIMEZONE})")
    return scheduler


def start_scheduler():
    """Start the scheduler."""
    global scheduler
    if scheduler is None:
        scheduler = init_scheduler()

    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")


def stop_scheduler():
    """Stop the scheduler gracefully."""
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Scheduler stopped")
