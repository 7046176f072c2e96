"""Class (roster) model."""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rms.core.database import Base
from rms.models.base import IDMixin, TimestampMixin, utcnow

class_subjects = Table(
    "class_subjects",
    Base.metadata,
    Column("class_id", BigInteger, ForeignKey("classes.id", ondelete="CASCADE"), primary_key=True),
    Column("subject_id", BigInteger, ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True),
)


class ClassEnrollment(Base):
    """Roster entry; ``position`` keeps the roster ordered by insertion."""

    __tablename__ = "class_enrollments"

    class_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("classes.id", ondelete="CASCADE"),
        primary_key=True,
    )
    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    student: Mapped["Student"] = relationship("Student", lazy="selectin")


class SchoolClass(Base, IDMixin, TimestampMixin):
    """A class: a roster of students taught a set of subjects."""

    __tablename__ = "classes"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    class_teacher_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("teachers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    max_strength: Mapped[int] = mapped_column(Integer, default=60, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    enrollments: Mapped[list[ClassEnrollment]] = relationship(
        ClassEnrollment,
        lazy="selectin",
        order_by=ClassEnrollment.position,
        cascade="all, delete-orphan",
    )
    subjects: Mapped[list["Subject"]] = relationship(
        "Subject",
        secondary=class_subjects,
        lazy="selectin",
    )

    @property
    def student_ids(self) -> list[int]:
        """Roster in insertion order."""
        return [e.student_id for e in self.enrollments]

    @property
    def current_strength(self) -> int:
        return len(self.enrollments)

    def __repr__(self) -> str:
        return f"<SchoolClass(id={self.id}, code={self.code})>"


# Import to avoid circular imports
from rms.models.student import Student  # noqa: E402
from rms.models.subject import Subject  # noqa: E402
