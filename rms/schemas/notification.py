"""Notification schemas."""

from datetime import datetime
from typing import Any

from rms.models.notification import NotificationChannel, NotificationPriority, NotificationStatus
from rms.schemas.common import BaseSchema


class NotificationResponse(BaseSchema):
    """Notification response schema."""

    id: int
    user_id: int
    channel: NotificationChannel
    title: str
    body: str
    data: dict[str, Any] | None
    priority: NotificationPriority
    status: NotificationStatus
    read_at: datetime | None
    sent_at: datetime | None
    created_at: datetime


class NotificationFilter(BaseSchema):
    """Notification filtering options."""

    is_read: bool | None = None
    priority: NotificationPriority | None = None


class NotificationStats(BaseSchema):
    """Notification statistics."""

    total: int
    unread: int
    read: int
