"""Result model."""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, BigInteger, Boolean, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rms.core.database import Base
from rms.models.base import IDMixin, TimestampMixin


class ExamType(str, enum.Enum):
    """Exam types a result can be recorded for."""

    MID = "mid"
    FINAL = "final"
    PRACTICAL = "practical"
    ASSIGNMENT = "assignment"


class Result(Base, IDMixin, TimestampMixin):
    """Marks for one (student, subject, semester, exam type).

    ``percentage``, ``grade``, ``grade_point`` and ``is_passed`` are derived
    from ``marks_obtained`` and the subject's scheme by the result service;
    nothing else writes them.
    """

    __tablename__ = "results"

    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    exam_type: Mapped[ExamType] = mapped_column(
        Enum(ExamType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    marks_obtained: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False)

    # Derived
    percentage: Mapped[Decimal] = mapped_column(DECIMAL(5, 2), nullable=False)
    grade: Mapped[str] = mapped_column(String(5), nullable=False)
    grade_point: Mapped[Decimal] = mapped_column(DECIMAL(4, 2), nullable=False)
    is_passed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Approval
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    approved_by_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    student: Mapped["Student"] = relationship("Student", lazy="selectin")
    subject: Mapped["Subject"] = relationship("Subject", lazy="selectin")

    __table_args__ = (
        UniqueConstraint(
            "student_id", "subject_id", "semester", "exam_type",
            name="uq_result_student_subject_semester_exam",
        ),
    )

    def __repr__(self) -> str:
        return f"<Result(student_id={self.student_id}, subject_id={self.subject_id}, grade={self.grade})>"


# Import to avoid circular imports
from rms.models.student import Student  # noqa: E402
from rms.models.subject import Subject  # noqa: E402
