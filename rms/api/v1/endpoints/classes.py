"""Class management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from rms.core.database import DbSession
from rms.core.dependencies import ClientContext, PageParams, StaffUser, require_permission
from rms.models.audit import AuditAction
from rms.models.user import User
from rms.schemas.classroom import ClassCreate, ClassResponse, ClassUpdate, RosterChange
from rms.schemas.common import ApiResponse, PaginatedResponse
from rms.services.audit import AuditService
from rms.services.classroom import ClassService, class_snapshot

router = APIRouter()

ManageClasses = Annotated[User, Depends(require_permission("manage:classes"))]


@router.post("", response_model=ApiResponse[ClassResponse], status_code=status.HTTP_201_CREATED)
def create_class(
    request: ClassCreate,
    admin: ManageClasses,
    db: DbSession,
    client: ClientContext,
):
    school_class = ClassService(db).create_class(request)

    AuditService(db).log(
        action=AuditAction.DATA_CREATED,
        resource_type="class",
        resource_id=school_class.id,
        actor_id=admin.id,
        after=class_snapshot(school_class),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Class created", data=ClassResponse.model_validate(school_class))


@router.get("", response_model=PaginatedResponse[ClassResponse])
def list_classes(
    staff: StaffUser,
    db: DbSession,
    pagination: PageParams,
    search: str | None = None,
    year: int | None = None,
    semester: int | None = None,
    is_active: bool | None = None,
):
    classes, total = ClassService(db).list_classes(
        search, year, semester, is_active, pagination.page, pagination.limit
    )
    return PaginatedResponse.build(classes, pagination.page, pagination.limit, total)


@router.get("/{class_id}", response_model=ApiResponse[ClassResponse])
def get_class(class_id: int, staff: StaffUser, db: DbSession):
    return ApiResponse(data=ClassResponse.model_validate(ClassService(db).get_class(class_id)))


@router.put("/{class_id}", response_model=ApiResponse[ClassResponse])
def update_class(
    class_id: int,
    request: ClassUpdate,
    admin: ManageClasses,
    db: DbSession,
    client: ClientContext,
):
    school_class, before = ClassService(db).update_class(class_id, request)

    AuditService(db).log(
        action=AuditAction.DATA_UPDATED,
        resource_type="class",
        resource_id=class_id,
        actor_id=admin.id,
        before=before,
        after=class_snapshot(school_class),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Class updated", data=ClassResponse.model_validate(school_class))


@router.post("/{class_id}/students", response_model=ApiResponse[ClassResponse])
def add_students(
    class_id: int,
    request: RosterChange,
    admin: ManageClasses,
    db: DbSession,
    client: ClientContext,
):
    """
    Add students to the roster. Students already in another class are moved.
    """
    service = ClassService(db)
    before = class_snapshot(service.get_class(class_id))
    school_class, added = service.add_students(class_id, request.student_ids)

    AuditService(db).log(
        action=AuditAction.DATA_UPDATED,
        resource_type="class",
        resource_id=class_id,
        actor_id=admin.id,
        before={"student_ids": before["student_ids"]},
        after={"student_ids": school_class.student_ids},
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(
        message=f"Added {added} students",
        data=ClassResponse.model_validate(school_class),
    )


@router.delete("/{class_id}/students", response_model=ApiResponse[ClassResponse])
def remove_students(
    class_id: int,
    request: RosterChange,
    admin: ManageClasses,
    db: DbSession,
    client: ClientContext,
):
    service = ClassService(db)
    before = class_snapshot(service.get_class(class_id))
    school_class, removed = service.remove_students(class_id, request.student_ids)

    AuditService(db).log(
        action=AuditAction.DATA_UPDATED,
        resource_type="class",
        resource_id=class_id,
        actor_id=admin.id,
        before={"student_ids": before["student_ids"]},
        after={"student_ids": school_class.student_ids},
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(
        message=f"Removed {removed} students",
        data=ClassResponse.model_validate(school_class),
    )


@router.delete("/{class_id}", response_model=ApiResponse[None])
def deactivate_class(
    class_id: int,
    admin: ManageClasses,
    db: DbSession,
    client: ClientContext,
):
    ClassService(db).deactivate_class(class_id)

    AuditService(db).log(
        action=AuditAction.DATA_DEACTIVATED,
        resource_type="class",
        resource_id=class_id,
        actor_id=admin.id,
        after={"is_active": False},
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Class deactivated")
