"""Subject model."""

import enum
from decimal import Decimal

from sqlalchemy import DECIMAL, BigInteger, Boolean, CheckConstraint, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rms.core.database import Base
from rms.models.base import IDMixin, TimestampMixin


class SubjectCategory(str, enum.Enum):
    """Subject delivery category."""

    THEORY = "theory"
    PRACTICAL = "practical"
    BOTH = "both"


class Subject(Base, IDMixin, TimestampMixin):
    """Subject with its marking scheme."""

    __tablename__ = "subjects"

    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    max_marks: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False, default=Decimal("100"))
    pass_marks: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False, default=Decimal("40"))
    category: Mapped[SubjectCategory] = mapped_column(
        Enum(SubjectCategory, values_callable=lambda e: [m.value for m in e]),
        default=SubjectCategory.THEORY,
        nullable=False,
    )
    credits: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    assigned_teacher_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("teachers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint("pass_marks <= max_marks", name="ck_subject_pass_le_max"),
        CheckConstraint("max_marks > 0", name="ck_subject_max_positive"),
        CheckConstraint("pass_marks >= 0", name="ck_subject_pass_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, code={self.code})>"
