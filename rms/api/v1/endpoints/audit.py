"""Audit log endpoints."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from rms.core.database import DbSession
from rms.core.dependencies import require_permission
from rms.models.audit import AuditAction, AuditStatus
from rms.models.user import User
from rms.schemas.audit import AuditLogFilter, AuditLogWithActor
from rms.schemas.common import PaginatedResponse
from rms.services.audit import AuditService

router = APIRouter()


@router.get("", response_model=PaginatedResponse[AuditLogWithActor])
def list_audit_logs(
    admin: Annotated[User, Depends(require_permission("view:audit-logs"))],
    db: DbSession,
    action: AuditAction | None = None,
    actor_id: int | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    status: AuditStatus | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
):
    """
    List audit logs, newest first.
    """
    filters = AuditLogFilter(
        action=action,
        actor_id=actor_id,
        resource_type=resource_type,
        resource_id=resource_id,
        status=status,
        date_from=date_from,
        date_to=date_to,
    )
    logs, total = AuditService(db).list_logs(filters, page, limit)
    return PaginatedResponse.build(logs, page, limit, total)
