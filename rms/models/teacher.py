"""Teacher profile model."""

from sqlalchemy import BigInteger, Column, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rms.core.database import Base
from rms.models.base import IDMixin, TimestampMixin

teacher_subjects = Table(
    "teacher_subjects",
    Base.metadata,
    Column("teacher_id", BigInteger, ForeignKey("teachers.id", ondelete="CASCADE"), primary_key=True),
    Column("subject_id", BigInteger, ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True),
)


class Teacher(Base, IDMixin, TimestampMixin):
    """Teacher profile extending a User one-to-one."""

    __tablename__ = "teachers"

    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    employee_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    department: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    qualification: Mapped[str | None] = mapped_column(String(255), nullable=True)
    specialization: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Relationships
    user: Mapped["User"] = relationship("User", lazy="selectin")
    subjects: Mapped[list["Subject"]] = relationship(
        "Subject",
        secondary=teacher_subjects,
        lazy="selectin",
        order_by="Subject.code",
    )

    @property
    def subject_ids(self) -> set[int]:
        return {s.id for s in self.subjects}

    def __repr__(self) -> str:
        return f"<Teacher(id={self.id}, employee_id={self.employee_id})>"


# Import to avoid circular imports
from rms.models.subject import Subject  # noqa: E402
from rms.models.user import User  # noqa: E402
