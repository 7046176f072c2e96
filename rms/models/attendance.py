"""Attendance record model."""

import enum
from datetime import date

from sqlalchemy import BigInteger, Date, Enum, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rms.core.database import Base
from rms.models.base import IDMixin, TimestampMixin


class AttendanceStatus(str, enum.Enum):
    """Attendance status enumeration."""

    PRESENT = "present"
    ABSENT = "absent"
    LEAVE = "leave"
    LATE = "late"

    @classmethod
    def from_string(cls, value: str) -> "AttendanceStatus":
        """Convert string to AttendanceStatus, handling common variations."""
        value = value.strip().upper()
        mapping = {
            "P": cls.PRESENT,
            "PRESENT": cls.PRESENT,
            "A": cls.ABSENT,
            "ABSENT": cls.ABSENT,
            "L": cls.LEAVE,
            "LEAVE": cls.LEAVE,
            "LT": cls.LATE,
            "LATE": cls.LATE,
        }
        if value in mapping:
            return mapping[value]
        raise ValueError(f"Invalid attendance status: {value}")


class AttendanceRecord(Base, IDMixin, TimestampMixin):
    """Attendance of one student in one subject on one date."""

    __tablename__ = "attendance_records"

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
    attendance_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[AttendanceStatus] = mapped_column(
        Enum(AttendanceStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AttendanceStatus.PRESENT,
    )
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Relationships
    student: Mapped["Student"] = relationship("Student", lazy="selectin")
    subject: Mapped["Subject"] = relationship("Subject", lazy="selectin")

    __table_args__ = (
        UniqueConstraint(
            "student_id", "subject_id", "attendance_date",
            name="uq_attendance_student_subject_date",
        ),
    )

    @property
    def formatted_date(self) -> str:
        return self.attendance_date.isoformat()

    @property
    def student_name(self) -> str:
        return self.student.full_name if self.student else ""

    @property
    def subject_code(self) -> str:
        return self.subject.code if self.subject else ""

    def __repr__(self) -> str:
        return f"<AttendanceRecord(student_id={self.student_id}, date={self.attendance_date})>"


# Import to avoid circular imports
from rms.models.student import Student  # noqa: E402
from rms.models.subject import Subject  # noqa: E402
