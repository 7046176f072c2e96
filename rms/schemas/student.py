"""Student schemas."""

from datetime import date, datetime

from pydantic import EmailStr, Field

from rms.schemas.attendance import AttendanceSummary
from rms.schemas.auth import UserSummary
from rms.schemas.common import BaseSchema
from rms.schemas.result import ResultResponse


class StudentCreate(BaseSchema):
    """Creates the user account and the student profile together."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    phone: str | None = None
    roll_no: str = Field(..., min_length=1, max_length=50)
    department: str = Field(..., min_length=1, max_length=255)
    batch: str = Field(..., min_length=1, max_length=50)
    semester: int = Field(..., ge=1)
    class_id: int | None = None
    date_of_birth: date | None = None
    address: str | None = None
    guardian_name: str | None = None
    guardian_phone: str | None = None
    guardian_email: EmailStr | None = None
    guardian_relation: str | None = None


class StudentUpdate(BaseSchema):
    department: str | None = Field(None, min_length=1, max_length=255)
    batch: str | None = Field(None, min_length=1, max_length=50)
    semester: int | None = Field(None, ge=1)
    class_id: int | None = None
    date_of_birth: date | None = None
    address: str | None = None
    guardian_name: str | None = None
    guardian_phone: str | None = None
    guardian_email: EmailStr | None = None
    guardian_relation: str | None = None


class StudentFilter(BaseSchema):
    search: str | None = None
    department: str | None = None
    batch: str | None = None
    semester: int | None = None
    class_id: int | None = None


class StudentResponse(BaseSchema):
    id: int
    user: UserSummary
    roll_no: str
    department: str
    batch: str
    semester: int
    class_id: int | None
    date_of_birth: date | None
    address: str | None
    guardian_name: str | None
    guardian_phone: str | None
    guardian_email: str | None
    guardian_relation: str | None
    created_at: datetime
    updated_at: datetime


class StudentDetail(StudentResponse):
    """Student with recent results and an attendance summary."""

    recent_results: list[ResultResponse] = []
    attendance: AttendanceSummary | None = None
