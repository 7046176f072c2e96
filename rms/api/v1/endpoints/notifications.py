"""Notification endpoints."""

from fastapi import APIRouter

from rms.core.database import DbSession
from rms.core.dependencies import CurrentUser, PageParams
from rms.models.notification import NotificationPriority
from rms.schemas.common import ApiResponse, PaginatedResponse
from rms.schemas.notification import NotificationFilter, NotificationResponse, NotificationStats
from rms.services.notification import NotificationService

router = APIRouter()


@router.get("", response_model=PaginatedResponse[NotificationResponse])
def list_notifications(
    current_user: CurrentUser,
    db: DbSession,
    pagination: PageParams,
    is_read: bool | None = None,
    priority: NotificationPriority | None = None,
):
    filters = NotificationFilter(is_read=is_read, priority=priority)
    notifications, total = NotificationService(db).list_notifications(
        current_user.id, filters, pagination.page, pagination.limit
    )
    return PaginatedResponse.build(
        [NotificationResponse.model_validate(n) for n in notifications],
        pagination.page,
        pagination.limit,
        total,
    )


@router.get("/stats", response_model=ApiResponse[NotificationStats])
def get_notification_stats(current_user: CurrentUser, db: DbSession):
    return ApiResponse(data=NotificationService(db).get_stats(current_user.id))


@router.patch("/read-all", response_model=ApiResponse[None])
def mark_all_notifications_read(current_user: CurrentUser, db: DbSession):
    count = NotificationService(db).mark_all_read(current_user.id)
    return ApiResponse(message=f"Marked {count} notifications as read", meta={"updated": count})


@router.patch("/{notification_id}/read", response_model=ApiResponse[NotificationResponse])
def mark_notification_read(notification_id: int, current_user: CurrentUser, db: DbSession):
    notification = NotificationService(db).mark_read(current_user.id, notification_id)
    return ApiResponse(data=NotificationResponse.model_validate(notification))


@router.delete("/{notification_id}", response_model=ApiResponse[None])
def delete_notification(notification_id: int, current_user: CurrentUser, db: DbSession):
    NotificationService(db).delete_notification(current_user.id, notification_id)
    return ApiResponse(message="Notification deleted")
