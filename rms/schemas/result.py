"""Result schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field, field_validator

from rms.models.result import ExamType
from rms.schemas.common import BaseSchema, BulkItemError, DecimalNumber
from rms.schemas.subject import SubjectBrief


class MarksEntry(BaseSchema):
    student_id: int
    marks_obtained: Decimal = Field(..., ge=0)
    remarks: str | None = None


class BulkMarksRequest(BaseSchema):
    """Marks for many students in one subject, semester and exam."""

    subject_id: int
    semester: int = Field(..., ge=1)
    exam_type: ExamType
    entries: list[MarksEntry] = Field(..., min_length=1)

    @field_validator("entries")
    @classmethod
    def unique_students(cls, v: list[MarksEntry]) -> list[MarksEntry]:
        student_ids = [entry.student_id for entry in v]
        if len(set(student_ids)) != len(student_ids):
            raise ValueError("Each student may appear only once per batch")
        return v


class ResultCreate(MarksEntry):
    subject_id: int
    semester: int = Field(..., ge=1)
    exam_type: ExamType


class ResultUpdate(BaseSchema):
    marks_obtained: Decimal | None = Field(None, ge=0)
    remarks: str | None = None


class ResultFilter(BaseSchema):
    student_id: int | None = None
    subject_id: int | None = None
    semester: int | None = None
    exam_type: ExamType | None = None
    is_approved: bool | None = None
    is_passed: bool | None = None


class ResultResponse(BaseSchema):
    id: int
    student_id: int
    subject_id: int
    subject: SubjectBrief | None = None
    semester: int
    exam_type: ExamType
    marks_obtained: DecimalNumber
    percentage: DecimalNumber
    grade: str
    grade_point: DecimalNumber
    is_passed: bool
    remarks: str | None
    created_by_id: int | None
    is_approved: bool
    approved_by_id: int | None
    approved_at: datetime | None
    created_at: datetime
    updated_at: datetime


class BulkMarksResponse(BaseSchema):
    created: int
    updated: int
    failed: int
    results: list[ResultResponse] = []
    errors: list[BulkItemError] = []
