"""Attendance management endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, status

from rms.core.database import DbSession
from rms.core.dependencies import (
    ClientContext,
    CurrentUser,
    PageParams,
    ensure_student_access,
    require_permission,
)
from rms.models.attendance import AttendanceStatus
from rms.models.audit import AuditAction
from rms.models.user import User
from rms.schemas.attendance import (
    AttendanceCreate,
    AttendanceFilter,
    AttendanceResponse,
    AttendanceSummary,
    AttendanceUpdate,
    BulkAttendanceRequest,
    BulkAttendanceResponse,
)
from rms.schemas.common import ApiResponse, PaginatedResponse
from rms.services.attendance import AttendanceService, attendance_snapshot
from rms.services.audit import AuditService

router = APIRouter()

ManageAttendance = Annotated[User, Depends(require_permission("manage:attendance"))]


@router.post("/bulk", response_model=ApiResponse[BulkAttendanceResponse])
def mark_attendance(
    request: BulkAttendanceRequest,
    actor: ManageAttendance,
    db: DbSession,
    client: ClientContext,
):
    """
    Mark attendance for many students in one subject on one date.
    """
    response = AttendanceService(db).mark_attendance(request, actor)

    AuditService(db).log(
        action=AuditAction.MARK_ATTENDANCE,
        resource_type="attendance",
        actor_id=actor.id,
        after={
            "subject_id": request.subject_id,
            "attendance_date": request.attendance_date,
            "created": response.created,
            "updated": response.updated,
            "failed": response.failed,
        },
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(
        message=f"Saved {response.created + response.updated} records, {response.failed} failed",
        data=response,
    )


@router.post("", response_model=ApiResponse[AttendanceResponse], status_code=status.HTTP_201_CREATED)
def create_attendance_record(
    request: AttendanceCreate,
    actor: ManageAttendance,
    db: DbSession,
    client: ClientContext,
):
    record = AttendanceService(db).create_record(request, actor)

    AuditService(db).log(
        action=AuditAction.MARK_ATTENDANCE,
        resource_type="attendance",
        resource_id=record.id,
        actor_id=actor.id,
        after=attendance_snapshot(record),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Attendance recorded", data=AttendanceResponse.model_validate(record))


@router.get("", response_model=PaginatedResponse[AttendanceResponse])
def list_attendance_records(
    current_user: CurrentUser,
    db: DbSession,
    pagination: PageParams,
    student_id: int | None = None,
    subject_id: int | None = None,
    status: AttendanceStatus | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
):
    """
    List attendance records. Students see only their own.
    """
    filters = AttendanceFilter(
        student_id=student_id,
        subject_id=subject_id,
        status=status,
        date_from=date_from,
        date_to=date_to,
    )
    records, total = AttendanceService(db).list_records(current_user, filters, pagination.page, pagination.limit)
    return PaginatedResponse.build(records, pagination.page, pagination.limit, total)


@router.get("/summary/{student_id}", response_model=ApiResponse[AttendanceSummary])
def get_attendance_summary(
    student_id: int,
    current_user: CurrentUser,
    db: DbSession,
    subject_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
):
    ensure_student_access(db, current_user, student_id)
    summary = AttendanceService(db).get_summary(student_id, subject_id, date_from, date_to)
    return ApiResponse(data=summary)


@router.get("/{record_id}", response_model=ApiResponse[AttendanceResponse])
def get_attendance_record(record_id: int, current_user: CurrentUser, db: DbSession):
    record = AttendanceService(db).get_record(record_id, viewer=current_user)
    return ApiResponse(data=AttendanceResponse.model_validate(record))


@router.put("/{record_id}", response_model=ApiResponse[AttendanceResponse])
def update_attendance_record(
    record_id: int,
    request: AttendanceUpdate,
    actor: ManageAttendance,
    db: DbSession,
    client: ClientContext,
):
    record, before = AttendanceService(db).update_record(record_id, request)

    AuditService(db).log(
        action=AuditAction.UPDATE_ATTENDANCE,
        resource_type="attendance",
        resource_id=record_id,
        actor_id=actor.id,
        before=before,
        after=attendance_snapshot(record),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Attendance updated", data=AttendanceResponse.model_validate(record))


@router.delete("/{record_id}", response_model=ApiResponse[None])
def delete_attendance_record(
    record_id: int,
    actor: ManageAttendance,
    db: DbSession,
    client: ClientContext,
):
    before = AttendanceService(db).delete_record(record_id)

    AuditService(db).log(
        action=AuditAction.DELETE_ATTENDANCE,
        resource_type="attendance",
        resource_id=record_id,
        actor_id=actor.id,
        before=before,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Attendance record deleted")
