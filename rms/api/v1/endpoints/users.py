"""User administration endpoints (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends

from rms.core.database import DbSession
from rms.core.dependencies import ClientContext, PageParams, require_permission
from rms.models.audit import AuditAction
from rms.models.user import User, UserRole
from rms.schemas.auth import AdminUserUpdate, UserFilter, UserResponse
from rms.schemas.common import ApiResponse, PaginatedResponse
from rms.services.audit import AuditService
from rms.services.user import UserService

router = APIRouter()

ManageUsers = Annotated[User, Depends(require_permission("manage:users"))]


@router.get("", response_model=PaginatedResponse[UserResponse])
def list_users(
    admin: ManageUsers,
    db: DbSession,
    pagination: PageParams,
    search: str | None = None,
    role: UserRole | None = None,
    is_active: bool | None = None,
):
    filters = UserFilter(search=search, role=role, is_active=is_active)
    users, total = UserService(db).list_users(filters, pagination.page, pagination.limit)
    return PaginatedResponse.build(users, pagination.page, pagination.limit, total)


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
def get_user(user_id: int, admin: ManageUsers, db: DbSession):
    return ApiResponse(data=UserResponse.model_validate(UserService(db).get_user(user_id)))


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
def update_user(
    user_id: int,
    request: AdminUserUpdate,
    admin: ManageUsers,
    db: DbSession,
    client: ClientContext,
):
    user, before = UserService(db).update_user(user_id, request, admin.id)

    AuditService(db).log(
        action=AuditAction.DATA_UPDATED,
        resource_type="user",
        resource_id=user_id,
        actor_id=admin.id,
        before=before,
        after=request.model_dump(exclude_unset=True),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="User updated", data=user)


@router.delete("/{user_id}", response_model=ApiResponse[None])
def deactivate_user(
    user_id: int,
    admin: ManageUsers,
    db: DbSession,
    client: ClientContext,
):
    """
    Deactivate a user and revoke their sessions. Users are never hard-deleted.
    """
    UserService(db).deactivate_user(user_id, admin.id)

    AuditService(db).log(
        action=AuditAction.DATA_DEACTIVATED,
        resource_type="user",
        resource_id=user_id,
        actor_id=admin.id,
        after={"is_active": False},
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="User deactivated")
