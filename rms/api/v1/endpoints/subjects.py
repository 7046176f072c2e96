"""Subject management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from rms.core.database import DbSession
from rms.core.dependencies import ClientContext, CurrentUser, PageParams, require_permission
from rms.models.audit import AuditAction
from rms.models.user import User
from rms.schemas.common import ApiResponse, PaginatedResponse
from rms.schemas.subject import SubjectCreate, SubjectResponse, SubjectUpdate
from rms.services.audit import AuditService
from rms.services.subject import SubjectService, subject_snapshot

router = APIRouter()

ManageSubjects = Annotated[User, Depends(require_permission("manage:subjects"))]


@router.post("", response_model=ApiResponse[SubjectResponse], status_code=status.HTTP_201_CREATED)
def create_subject(
    request: SubjectCreate,
    admin: ManageSubjects,
    db: DbSession,
    client: ClientContext,
):
    subject = SubjectService(db).create_subject(request)

    AuditService(db).log(
        action=AuditAction.DATA_CREATED,
        resource_type="subject",
        resource_id=subject.id,
        actor_id=admin.id,
        after=subject_snapshot(subject),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Subject created", data=SubjectResponse.model_validate(subject))


@router.get("", response_model=PaginatedResponse[SubjectResponse])
def list_subjects(
    current_user: CurrentUser,
    db: DbSession,
    pagination: PageParams,
    search: str | None = None,
    is_active: bool | None = None,
):
    subjects, total = SubjectService(db).list_subjects(search, is_active, pagination.page, pagination.limit)
    return PaginatedResponse.build(subjects, pagination.page, pagination.limit, total)


@router.get("/{subject_id}", response_model=ApiResponse[SubjectResponse])
def get_subject(subject_id: int, current_user: CurrentUser, db: DbSession):
    return ApiResponse(data=SubjectResponse.model_validate(SubjectService(db).get_subject(subject_id)))


@router.put("/{subject_id}", response_model=ApiResponse[SubjectResponse])
def update_subject(
    subject_id: int,
    request: SubjectUpdate,
    admin: ManageSubjects,
    db: DbSession,
    client: ClientContext,
):
    """
    Update a subject. Changing max or pass marks re-derives all of its results.
    """
    subject, before, recomputed = SubjectService(db).update_subject(subject_id, request)

    AuditService(db).log(
        action=AuditAction.DATA_UPDATED,
        resource_type="subject",
        resource_id=subject_id,
        actor_id=admin.id,
        before=before,
        after=subject_snapshot(subject),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(
        message="Subject updated",
        data=SubjectResponse.model_validate(subject),
        meta={"recomputedResults": recomputed},
    )


@router.delete("/{subject_id}", response_model=ApiResponse[None])
def deactivate_subject(
    subject_id: int,
    admin: ManageSubjects,
    db: DbSession,
    client: ClientContext,
):
    SubjectService(db).deactivate_subject(subject_id)

    AuditService(db).log(
        action=AuditAction.DATA_DEACTIVATED,
        resource_type="subject",
        resource_id=subject_id,
        actor_id=admin.id,
        after={"is_active": False},
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Subject deactivated")
