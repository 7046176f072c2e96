"""Audit logging service."""

import logging
from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rms.models.audit import AuditAction, AuditLog, AuditStatus
from rms.schemas.audit import AuditLogFilter, AuditLogWithActor

logger = logging.getLogger(__name__)


class AuditService:
    """Audit logging service - append-only."""

    def __init__(self, db: Session):
        self.db = db

    def log(
        self,
        action: AuditAction,
        resource_type: str,
        resource_id: Any = None,
        actor_id: int | None = None,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        status: AuditStatus = AuditStatus.SUCCESS,
        error_message: str | None = None,
    ) -> AuditLog | None:
        """Create an audit log entry.

        Runs in a savepoint so a failing write never disturbs the caller's
        transaction; failures are logged and ``None`` is returned.
        """
        try:
            with self.db.begin_nested():
                entry = AuditLog(
                    actor_id=actor_id,
                    action=action,
                    resource_type=resource_type,
                    resource_id=str(resource_id) if resource_id is not None else None,
                    before=jsonable_encoder(before) if before is not None else None,
                    after=jsonable_encoder(after) if after is not None else None,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    status=status,
                    error_message=error_message,
                )
                self.db.add(entry)
            return entry
        except Exception:
            logger.exception(f"Failed to write audit entry {action.value} for {resource_type}:{resource_id}")
            return None

    def list_logs(
        self,
        filters: AuditLogFilter | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[AuditLogWithActor], int]:
        """List audit logs with filtering."""
        query = select(AuditLog)

        if filters:
            if filters.action:
                query = query.where(AuditLog.action == filters.action)
            if filters.actor_id:
                query = query.where(AuditLog.actor_id == filters.actor_id)
            if filters.resource_type:
                query = query.where(AuditLog.resource_type == filters.resource_type)
            if filters.resource_id:
                query = query.where(AuditLog.resource_id == filters.resource_id)
            if filters.status:
                query = query.where(AuditLog.status == filters.status)
            if filters.date_from:
                query = query.where(AuditLog.created_at >= filters.date_from)
            if filters.date_to:
                query = query.where(AuditLog.created_at <= filters.date_to)

        # Count total
        total = self.db.execute(
            select(func.count()).select_from(query.subquery())
        ).scalar() or 0

        # Apply pagination and ordering
        query = (
            query
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        logs = self.db.execute(query).scalars().all()

        return [
            AuditLogWithActor(
                id=log.id,
                actor_id=log.actor_id,
                action=log.action,
                resource_type=log.resource_type,
                resource_id=log.resource_id,
                before=log.before,
                after=log.after,
                ip_address=log.ip_address,
                user_agent=log.user_agent,
                status=log.status,
                error_message=log.error_message,
                created_at=log.created_at,
                actor_name=log.actor.full_name if log.actor else None,
                actor_email=log.actor.email if log.actor else None,
            )
            for log in logs
        ], total
