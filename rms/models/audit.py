"""Audit log model."""

import enum
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Enum, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rms.core.database import Base
from rms.models.base import IDMixin, JSONType, utcnow


class AuditAction(str, enum.Enum):
    """Audit action types."""

    # User actions
    USER_REGISTERED = "USER_REGISTERED"
    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    PROFILE_UPDATED = "PROFILE_UPDATED"

    # Marks / results
    CREATE_MARKS = "CREATE_MARKS"
    UPDATE_MARKS = "UPDATE_MARKS"
    UPDATE_RESULT = "UPDATE_RESULT"
    APPROVE_RESULT = "APPROVE_RESULT"
    DELETE_RESULT = "DELETE_RESULT"

    # Attendance
    MARK_ATTENDANCE = "MARK_ATTENDANCE"
    UPDATE_ATTENDANCE = "UPDATE_ATTENDANCE"
    DELETE_ATTENDANCE = "DELETE_ATTENDANCE"

    # Data mutations
    DATA_CREATED = "DATA_CREATED"
    DATA_UPDATED = "DATA_UPDATED"
    DATA_DEACTIVATED = "DATA_DEACTIVATED"

    # Configuration
    CONFIG_UPDATED = "CONFIG_UPDATED"


class AuditStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"


class AuditLog(Base, IDMixin):
    """Append-only audit log model."""

    __tablename__ = "audit_logs"

    # Actor
    actor_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Action details
    action: Mapped[AuditAction] = mapped_column(
        Enum(AuditAction),
        nullable=False,
        index=True,
    )
    resource_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    resource_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Snapshots
    before: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    after: Mapped[dict | None] = mapped_column(JSONType, nullable=True)

    # Request context
    ip_address: Mapped[str | None] = mapped_column(String(50), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[AuditStatus] = mapped_column(
        Enum(AuditStatus, values_callable=lambda e: [m.value for m in e]),
        default=AuditStatus.SUCCESS,
        nullable=False,
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Timestamp (append-only, no updated_at)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    # Relationships
    actor: Mapped["User | None"] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action={self.action})>"


# Import to avoid circular imports
from rms.models.user import User  # noqa: E402
