"""Class schemas."""

from datetime import datetime

from pydantic import Field

from rms.schemas.common import BaseSchema
from rms.schemas.subject import SubjectBrief


class ClassCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50)
    year: int | None = Field(None, ge=1900)
    semester: int = Field(..., ge=1)
    class_teacher_id: int | None = None
    subject_ids: list[int] = []
    max_strength: int = Field(60, ge=1)


class ClassUpdate(BaseSchema):
    name: str | None = Field(None, min_length=1, max_length=255)
    year: int | None = Field(None, ge=1900)
    semester: int | None = Field(None, ge=1)
    class_teacher_id: int | None = None
    subject_ids: list[int] | None = None
    max_strength: int | None = Field(None, ge=1)
    is_active: bool | None = None


class RosterChange(BaseSchema):
    student_ids: list[int] = Field(..., min_length=1)


class ClassResponse(BaseSchema):
    id: int
    name: str
    code: str
    year: int
    semester: int
    class_teacher_id: int | None
    max_strength: int
    current_strength: int
    student_ids: list[int]
    subjects: list[SubjectBrief] = []
    is_active: bool
    created_at: datetime
    updated_at: datetime
