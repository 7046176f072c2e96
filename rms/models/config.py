"""Runtime configuration model."""

import enum
from typing import Any

from sqlalchemy import BigInteger, Boolean, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rms.core.database import Base
from rms.models.base import IDMixin, JSONType, TimestampMixin


class ConfigCategory(str, enum.Enum):
    SYSTEM = "system"
    GRADING = "grading"
    EXAM = "exam"
    NOTIFICATION = "notification"
    ACADEMIC = "academic"


class ConfigEntry(Base, IDMixin, TimestampMixin):
    """Admin-editable key/value configuration row."""

    __tablename__ = "config_entries"

    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    value: Mapped[Any] = mapped_column(JSONType, nullable=False)
    category: Mapped[ConfigCategory] = mapped_column(
        Enum(ConfigCategory, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    updated_by_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<ConfigEntry(key={self.key})>"
