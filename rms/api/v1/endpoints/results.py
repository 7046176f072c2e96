"""Result (marks) endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from rms.core.database import DbSession
from rms.core.dependencies import ClientContext, CurrentUser, PageParams, require_permission
from rms.models.audit import AuditAction
from rms.models.result import ExamType
from rms.models.user import User
from rms.schemas.common import ApiResponse, PaginatedResponse
from rms.schemas.result import (
    BulkMarksRequest,
    BulkMarksResponse,
    ResultCreate,
    ResultFilter,
    ResultResponse,
    ResultUpdate,
)
from rms.services.audit import AuditService
from rms.services.result import ResultService, result_snapshot

router = APIRouter()

EnterMarks = Annotated[User, Depends(require_permission("enter:marks"))]
ApproveResults = Annotated[User, Depends(require_permission("approve:results"))]


@router.post("/bulk", response_model=ApiResponse[BulkMarksResponse])
def enter_marks(
    request: BulkMarksRequest,
    actor: EnterMarks,
    db: DbSession,
    client: ClientContext,
):
    """
    Enter marks for many students at once.
    Entries fail independently; failures are listed in the response.
    """
    response = ResultService(db).enter_marks(request, actor)

    AuditService(db).log(
        action=AuditAction.CREATE_MARKS,
        resource_type="result",
        actor_id=actor.id,
        after={
            "subject_id": request.subject_id,
            "semester": request.semester,
            "exam_type": request.exam_type,
            "created": response.created,
            "updated": response.updated,
            "failed": response.failed,
            "result_ids": [r.id for r in response.results],
        },
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(
        message=f"Saved {response.created + response.updated} results, {response.failed} failed",
        data=response,
    )


@router.post("", response_model=ApiResponse[ResultResponse], status_code=status.HTTP_201_CREATED)
def create_result(
    request: ResultCreate,
    actor: EnterMarks,
    db: DbSession,
    client: ClientContext,
):
    result = ResultService(db).create_result(request, actor)

    AuditService(db).log(
        action=AuditAction.CREATE_MARKS,
        resource_type="result",
        resource_id=result.id,
        actor_id=actor.id,
        after=result_snapshot(result),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Result created", data=ResultResponse.model_validate(result))


@router.get("", response_model=PaginatedResponse[ResultResponse])
def list_results(
    current_user: CurrentUser,
    db: DbSession,
    pagination: PageParams,
    student_id: int | None = None,
    subject_id: int | None = None,
    semester: int | None = None,
    exam_type: ExamType | None = None,
    is_approved: bool | None = None,
    is_passed: bool | None = None,
):
    """
    List results. Students see only their own; teachers only their subjects'.
    """
    filters = ResultFilter(
        student_id=student_id,
        subject_id=subject_id,
        semester=semester,
        exam_type=exam_type,
        is_approved=is_approved,
        is_passed=is_passed,
    )
    results, total = ResultService(db).list_results(current_user, filters, pagination.page, pagination.limit)
    return PaginatedResponse.build(results, pagination.page, pagination.limit, total)


@router.get("/{result_id}", response_model=ApiResponse[ResultResponse])
def get_result(result_id: int, current_user: CurrentUser, db: DbSession):
    result = ResultService(db).get_result(result_id, viewer=current_user)
    return ApiResponse(data=ResultResponse.model_validate(result))


@router.put("/{result_id}", response_model=ApiResponse[ResultResponse])
def update_result(
    result_id: int,
    request: ResultUpdate,
    actor: EnterMarks,
    db: DbSession,
    client: ClientContext,
):
    result, before, after = ResultService(db).update_result(result_id, request, actor)

    AuditService(db).log(
        action=AuditAction.UPDATE_MARKS if request.marks_obtained is not None else AuditAction.UPDATE_RESULT,
        resource_type="result",
        resource_id=result_id,
        actor_id=actor.id,
        before=before,
        after=after,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Result updated", data=ResultResponse.model_validate(result))


@router.patch("/{result_id}/approve", response_model=ApiResponse[ResultResponse])
def approve_result(
    result_id: int,
    admin: ApproveResults,
    db: DbSession,
    client: ClientContext,
):
    """
    Approve a result. The student is notified.
    """
    result, before = ResultService(db).approve_result(result_id, admin)

    AuditService(db).log(
        action=AuditAction.APPROVE_RESULT,
        resource_type="result",
        resource_id=result_id,
        actor_id=admin.id,
        before=before,
        after=result_snapshot(result),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Result approved", data=ResultResponse.model_validate(result))


@router.delete("/{result_id}", response_model=ApiResponse[None])
def delete_result(
    result_id: int,
    admin: ApproveResults,
    db: DbSession,
    client: ClientContext,
):
    before = ResultService(db).delete_result(result_id)

    AuditService(db).log(
        action=AuditAction.DELETE_RESULT,
        resource_type="result",
        resource_id=result_id,
        actor_id=admin.id,
        before=before,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Result deleted")
