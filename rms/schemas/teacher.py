"""Teacher schemas."""

from datetime import datetime

from pydantic import EmailStr, Field

from rms.schemas.auth import UserSummary
from rms.schemas.common import BaseSchema
from rms.schemas.subject import SubjectBrief


class TeacherCreate(BaseSchema):
    """Creates the user account and the teacher profile together."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    phone: str | None = None
    employee_id: str = Field(..., min_length=1, max_length=50)
    department: str = Field(..., min_length=1, max_length=255)
    subject_ids: list[int] = []
    qualification: str | None = None
    specialization: str | None = None


class TeacherUpdate(BaseSchema):
    department: str | None = Field(None, min_length=1, max_length=255)
    subject_ids: list[int] | None = None
    qualification: str | None = None
    specialization: str | None = None


class TeacherFilter(BaseSchema):
    search: str | None = None
    department: str | None = None


class TeacherResponse(BaseSchema):
    id: int
    user: UserSummary
    employee_id: str
    department: str
    qualification: str | None
    specialization: str | None
    subjects: list[SubjectBrief] = []
    created_at: datetime
    updated_at: datetime
