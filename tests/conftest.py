"""Shared fixtures.

The app runs against an in-memory SQLite database; every test gets freshly
created tables. Helpers that seed data open their own short-lived session
and commit before any request is made.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SCHEDULER_ENABLED"] = "false"

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from rms import models  # noqa: E402,F401
from rms.core.database import Base, SessionLocal, engine  # noqa: E402
from rms.core.security import issue_token_pair  # noqa: E402
from rms.main import app  # noqa: E402
from rms.models.classroom import SchoolClass  # noqa: E402
from rms.models.subject import Subject  # noqa: E402
from rms.models.user import UserRole  # noqa: E402
from rms.schemas.student import StudentCreate  # noqa: E402
from rms.schemas.teacher import TeacherCreate  # noqa: E402
from rms.services.auth import AuthService  # noqa: E402
from rms.services.config import ConfigService  # noqa: E402
from rms.services.student import StudentService  # noqa: E402
from rms.services.teacher import TeacherService  # noqa: E402

API = "/api/v1"
PASSWORD = "Secret123!"


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def auth_headers(user_id: int) -> dict:
    """Bearer header for a stored user, bound to their current token version."""
    with SessionLocal() as session:
        user = AuthService(session).get_user_by_id(user_id)
        pair = issue_token_pair(user.id, user.role.value, user.token_version)
    return {"Authorization": f"Bearer {pair.access_token}"}


def make_admin(email: str = "admin@school.edu") -> int:
    with SessionLocal() as session:
        user = AuthService(session).create_user("Ada", "Admin", email, PASSWORD, UserRole.ADMIN)
        session.commit()
        return user.id


def make_subject(code: str = "MATH101", max_marks: str = "100", pass_marks: str = "40", **kwargs) -> int:
    with SessionLocal() as session:
        subject = Subject(
            code=code,
            name=kwargs.pop("name", f"Subject {code}"),
            max_marks=Decimal(max_marks),
            pass_marks=Decimal(pass_marks),
            **kwargs,
        )
        session.add(subject)
        session.commit()
        return subject.id


def make_class(code: str = "CSE-A", max_strength: int = 60) -> int:
    with SessionLocal() as session:
        school_class = SchoolClass(name=f"Class {code}", code=code, year=2026, semester=1, max_strength=max_strength)
        session.add(school_class)
        session.commit()
        return school_class.id


def make_student(roll_no: str, class_id: int | None = None, first_name: str = "Sam") -> tuple[int, int]:
    """Create a student; returns ``(student_id, user_id)``."""
    with SessionLocal() as session:
        student = StudentService(session).create_student(
            StudentCreate(
                first_name=first_name,
                last_name=roll_no,
                email=f"{roll_no.lower()}@school.edu",
                password=PASSWORD,
                roll_no=roll_no,
                department="CSE",
                batch="2026",
                semester=1,
                class_id=class_id,
            )
        )
        session.commit()
        return student.id, student.user_id


def make_teacher(employee_id: str, subject_ids: list[int] | None = None) -> tuple[int, int]:
    """Create a teacher; returns ``(teacher_id, user_id)``."""
    with SessionLocal() as session:
        teacher = TeacherService(session).create_teacher(
            TeacherCreate(
                first_name="Tina",
                last_name=employee_id,
                email=f"{employee_id.lower()}@school.edu",
                password=PASSWORD,
                employee_id=employee_id,
                department="CSE",
                subject_ids=subject_ids or [],
            )
        )
        session.commit()
        return teacher.id, teacher.user_id


def seed_config() -> None:
    with SessionLocal() as session:
        ConfigService(session).seed_defaults()
        session.commit()


@pytest.fixture
def admin_headers():
    return auth_headers(make_admin())
