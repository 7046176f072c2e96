"""Student profile model."""

from datetime import date

from sqlalchemy import BigInteger, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rms.core.database import Base
from rms.models.base import IDMixin, TimestampMixin


class Student(Base, IDMixin, TimestampMixin):
    """Student profile extending a User one-to-one."""

    __tablename__ = "students"

    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    roll_no: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    department: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    batch: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    class_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("classes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Additional info
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    guardian_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    guardian_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    guardian_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    guardian_relation: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Relationships
    user: Mapped["User"] = relationship("User", lazy="selectin")

    @property
    def full_name(self) -> str:
        return self.user.full_name if self.user else ""

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, roll_no={self.roll_no})>"


# Import to avoid circular imports
from rms.models.user import User  # noqa: E402
