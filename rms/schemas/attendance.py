"""Attendance schemas."""

from datetime import date, datetime

from pydantic import Field, field_validator

from rms.models.attendance import AttendanceStatus
from rms.schemas.common import BaseSchema, BulkItemError, DecimalNumber


class AttendanceEntry(BaseSchema):
    """One student's status inside a bulk mark request."""

    student_id: int
    status: AttendanceStatus = AttendanceStatus.PRESENT
    remarks: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v):
        if isinstance(v, str):
            return AttendanceStatus.from_string(v)
        return v


class BulkAttendanceRequest(BaseSchema):
    """Mark attendance for many students in one subject on one date."""

    subject_id: int
    attendance_date: date
    entries: list[AttendanceEntry] = Field(..., min_length=1)

    @field_validator("entries")
    @classmethod
    def unique_students(cls, v: list[AttendanceEntry]) -> list[AttendanceEntry]:
        student_ids = [entry.student_id for entry in v]
        if len(set(student_ids)) != len(student_ids):
            raise ValueError("Each student may appear only once per batch")
        return v


class AttendanceCreate(AttendanceEntry):
    subject_id: int
    attendance_date: date


class AttendanceUpdate(BaseSchema):
    status: AttendanceStatus | None = None
    remarks: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v):
        if isinstance(v, str):
            return AttendanceStatus.from_string(v)
        return v


class AttendanceResponse(BaseSchema):
    id: int
    student_id: int
    student_name: str
    subject_id: int
    subject_code: str
    attendance_date: date
    status: AttendanceStatus
    remarks: str | None
    created_by_id: int | None
    created_at: datetime
    updated_at: datetime


class AttendanceFilter(BaseSchema):
    student_id: int | None = None
    subject_id: int | None = None
    status: AttendanceStatus | None = None
    date_from: date | None = None
    date_to: date | None = None


class BulkAttendanceResponse(BaseSchema):
    created: int
    updated: int
    failed: int
    records: list[AttendanceResponse] = []
    errors: list[BulkItemError] = []


class SubjectAttendance(BaseSchema):
    subject_id: int
    subject_code: str
    subject_name: str
    total: int
    present: int
    percentage: DecimalNumber


class AttendanceSummary(BaseSchema):
    """Counts by status over a student's records.

    ``percentage`` counts only ``present`` as attended.
    """

    student_id: int
    total: int
    present: int
    absent: int
    leave: int
    late: int
    percentage: DecimalNumber
    below_threshold: bool
    threshold: DecimalNumber
    subject_wise: list[SubjectAttendance] = []
