"""Teacher management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from rms.core.database import DbSession
from rms.core.dependencies import ClientContext, PageParams, StaffUser, require_permission
from rms.models.audit import AuditAction
from rms.models.user import User
from rms.schemas.common import ApiResponse, PaginatedResponse
from rms.schemas.teacher import TeacherCreate, TeacherFilter, TeacherResponse, TeacherUpdate
from rms.services.audit import AuditService
from rms.services.teacher import TeacherService, teacher_snapshot

router = APIRouter()

ManageTeachers = Annotated[User, Depends(require_permission("manage:teachers"))]


@router.post("", response_model=ApiResponse[TeacherResponse], status_code=status.HTTP_201_CREATED)
def create_teacher(
    request: TeacherCreate,
    admin: ManageTeachers,
    db: DbSession,
    client: ClientContext,
):
    teacher = TeacherService(db).create_teacher(request)

    AuditService(db).log(
        action=AuditAction.DATA_CREATED,
        resource_type="teacher",
        resource_id=teacher.id,
        actor_id=admin.id,
        after=teacher_snapshot(teacher),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Teacher created", data=TeacherResponse.model_validate(teacher))


@router.get("", response_model=PaginatedResponse[TeacherResponse])
def list_teachers(
    staff: StaffUser,
    db: DbSession,
    pagination: PageParams,
    search: str | None = None,
    department: str | None = None,
):
    filters = TeacherFilter(search=search, department=department)
    teachers, total = TeacherService(db).list_teachers(filters, pagination.page, pagination.limit)
    return PaginatedResponse.build(teachers, pagination.page, pagination.limit, total)


@router.get("/{teacher_id}", response_model=ApiResponse[TeacherResponse])
def get_teacher(teacher_id: int, staff: StaffUser, db: DbSession):
    return ApiResponse(data=TeacherResponse.model_validate(TeacherService(db).get_teacher(teacher_id)))


@router.put("/{teacher_id}", response_model=ApiResponse[TeacherResponse])
def update_teacher(
    teacher_id: int,
    request: TeacherUpdate,
    admin: ManageTeachers,
    db: DbSession,
    client: ClientContext,
):
    teacher, before = TeacherService(db).update_teacher(teacher_id, request)

    AuditService(db).log(
        action=AuditAction.DATA_UPDATED,
        resource_type="teacher",
        resource_id=teacher_id,
        actor_id=admin.id,
        before=before,
        after=teacher_snapshot(teacher),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Teacher updated", data=TeacherResponse.model_validate(teacher))


@router.delete("/{teacher_id}", response_model=ApiResponse[None])
def deactivate_teacher(
    teacher_id: int,
    admin: ManageTeachers,
    db: DbSession,
    client: ClientContext,
):
    TeacherService(db).deactivate_teacher(teacher_id)

    AuditService(db).log(
        action=AuditAction.DATA_DEACTIVATED,
        resource_type="teacher",
        resource_id=teacher_id,
        actor_id=admin.id,
        after={"is_active": False},
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Teacher deactivated")
