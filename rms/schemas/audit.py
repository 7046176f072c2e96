"""Audit log schemas."""

from datetime import datetime
from typing import Any

from rms.models.audit import AuditAction, AuditStatus
from rms.schemas.common import BaseSchema


class AuditLogResponse(BaseSchema):
    """Audit log response schema."""

    id: int
    actor_id: int | None
    action: AuditAction
    resource_type: str
    resource_id: str | None
    before: dict[str, Any] | None
    after: dict[str, Any] | None
    ip_address: str | None
    user_agent: str | None
    status: AuditStatus
    error_message: str | None
    created_at: datetime


class AuditLogWithActor(AuditLogResponse):
    """Audit log with actor details."""

    actor_name: str | None = None
    actor_email: str | None = None


class AuditLogFilter(BaseSchema):
    """Audit log filtering options."""

    action: AuditAction | None = None
    actor_id: int | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    status: AuditStatus | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
