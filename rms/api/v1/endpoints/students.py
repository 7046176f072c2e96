"""Student management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from rms.core.database import DbSession
from rms.core.dependencies import (
    ClientContext,
    CurrentUser,
    PageParams,
    StaffUser,
    ensure_student_access,
    require_permission,
)
from rms.models.audit import AuditAction
from rms.models.user import User
from rms.schemas.common import ApiResponse, PaginatedResponse
from rms.schemas.result import ResultResponse
from rms.schemas.student import (
    StudentCreate,
    StudentDetail,
    StudentFilter,
    StudentResponse,
    StudentUpdate,
)
from rms.services.attendance import AttendanceService
from rms.services.audit import AuditService
from rms.services.student import StudentService, student_snapshot

router = APIRouter()

ManageStudents = Annotated[User, Depends(require_permission("manage:students"))]


@router.post("", response_model=ApiResponse[StudentResponse], status_code=status.HTTP_201_CREATED)
def create_student(
    request: StudentCreate,
    admin: ManageStudents,
    db: DbSession,
    client: ClientContext,
):
    """
    Create a student account and profile, optionally placing them in a class.
    """
    student = StudentService(db).create_student(request)

    AuditService(db).log(
        action=AuditAction.DATA_CREATED,
        resource_type="student",
        resource_id=student.id,
        actor_id=admin.id,
        after=student_snapshot(student),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Student created", data=StudentResponse.model_validate(student))


@router.get("", response_model=PaginatedResponse[StudentResponse])
def list_students(
    staff: StaffUser,
    db: DbSession,
    pagination: PageParams,
    search: str | None = None,
    department: str | None = None,
    batch: str | None = None,
    semester: int | None = None,
    class_id: int | None = None,
):
    filters = StudentFilter(
        search=search,
        department=department,
        batch=batch,
        semester=semester,
        class_id=class_id,
    )
    students, total = StudentService(db).list_students(filters, pagination.page, pagination.limit)
    return PaginatedResponse.build(students, pagination.page, pagination.limit, total)


@router.get("/{student_id}", response_model=ApiResponse[StudentDetail])
def get_student(student_id: int, current_user: CurrentUser, db: DbSession):
    """
    Get a student with their recent results and attendance summary.
    Students may only fetch their own profile.
    """
    ensure_student_access(db, current_user, student_id)
    service = StudentService(db)
    student = service.get_student(student_id)

    detail = StudentDetail.model_validate(student)
    detail.recent_results = [ResultResponse.model_validate(r) for r in service.get_recent_results(student_id)]
    detail.attendance = AttendanceService(db).get_summary(student_id)
    return ApiResponse(data=detail)


@router.put("/{student_id}", response_model=ApiResponse[StudentResponse])
def update_student(
    student_id: int,
    request: StudentUpdate,
    admin: ManageStudents,
    db: DbSession,
    client: ClientContext,
):
    student, before = StudentService(db).update_student(student_id, request)

    AuditService(db).log(
        action=AuditAction.DATA_UPDATED,
        resource_type="student",
        resource_id=student_id,
        actor_id=admin.id,
        before=before,
        after=student_snapshot(student),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Student updated", data=StudentResponse.model_validate(student))


@router.delete("/{student_id}", response_model=ApiResponse[None])
def deactivate_student(
    student_id: int,
    admin: ManageStudents,
    db: DbSession,
    client: ClientContext,
):
    """
    Deactivate the student's account and remove them from their class.
    """
    student = StudentService(db).deactivate_student(student_id)

    AuditService(db).log(
        action=AuditAction.DATA_DEACTIVATED,
        resource_type="student",
        resource_id=student_id,
        actor_id=admin.id,
        after=student_snapshot(student),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Student deactivated")
