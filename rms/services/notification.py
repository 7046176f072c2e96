"""Notification service."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from rms.core.exceptions import NotFoundError
from rms.models.notification import (
    Notification,
    NotificationChannel,
    NotificationPriority,
    NotificationStatus,
)
from rms.schemas.notification import NotificationFilter, NotificationStats


class NotificationService:
    """In-app notification service."""

    def __init__(self, db: Session):
        self.db = db

    def create_notification(
        self,
        user_id: int,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        channel: NotificationChannel = NotificationChannel.IN_APP,
    ) -> Notification:
        """Create a notification.

        In-app notifications are delivered by being stored, so they are
        marked sent immediately.
        """
        now = datetime.now(timezone.utc)
        in_app = channel == NotificationChannel.IN_APP
        notification = Notification(
            user_id=user_id,
            channel=channel,
            title=title,
            body=body,
            data=data,
            priority=priority,
            status=NotificationStatus.SENT if in_app else NotificationStatus.PENDING,
            sent_at=now if in_app else None,
        )
        self.db.add(notification)
        self.db.flush()
        return notification

    def get_notification(self, user_id: int, notification_id: int) -> Notification:
        notification = self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        ).scalar_one_or_none()
        if not notification:
            raise NotFoundError("Notification", str(notification_id))
        return notification

    def list_notifications(
        self,
        user_id: int,
        filters: NotificationFilter | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Notification], int]:
        """List a user's notifications, newest first."""
        query = select(Notification).where(Notification.user_id == user_id)

        if filters:
            if filters.is_read is not None:
                if filters.is_read:
                    query = query.where(Notification.read_at.is_not(None))
                else:
                    query = query.where(Notification.read_at.is_(None))
            if filters.priority:
                query = query.where(Notification.priority == filters.priority)

        total = self.db.execute(
            select(func.count()).select_from(query.subquery())
        ).scalar() or 0

        query = (
            query
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(self.db.execute(query).scalars().all()), total

    def get_stats(self, user_id: int) -> NotificationStats:
        row = self.db.execute(
            select(
                func.count(Notification.id).label("total"),
                func.count(Notification.read_at).label("read"),
            ).where(Notification.user_id == user_id)
        ).one()
        total = row.total or 0
        read = row.read or 0
        return NotificationStats(total=total, unread=total - read, read=read)

    def mark_read(self, user_id: int, notification_id: int) -> Notification:
        notification = self.get_notification(user_id, notification_id)
        if notification.read_at is None:
            notification.read_at = datetime.now(timezone.utc)
            notification.status = NotificationStatus.READ
            self.db.flush()
        return notification

    def mark_all_read(self, user_id: int) -> int:
        """Mark every unread notification read; returns how many changed."""
        result = self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read_at.is_(None))
            .values(read_at=datetime.now(timezone.utc), status=NotificationStatus.READ)
            .execution_options(synchronize_session=False)
        )
        self.db.flush()
        return result.rowcount or 0

    def delete_notification(self, user_id: int, notification_id: int) -> None:
        notification = self.get_notification(user_id, notification_id)
        self.db.delete(notification)
        self.db.flush()
