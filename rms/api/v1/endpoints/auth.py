"""Authentication endpoints."""

from fastapi import APIRouter, status

from rms.core.database import DbSession
from rms.core.dependencies import ClientContext, CurrentUser
from rms.models.audit import AuditAction
from rms.schemas.auth import (
    AuthResponse,
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from rms.schemas.common import ApiResponse
from rms.services.audit import AuditService
from rms.services.auth import AuthService

router = APIRouter()


@router.post("/register", response_model=ApiResponse[AuthResponse], status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    db: DbSession,
    client: ClientContext,
):
    """
    Register a new user account and sign it in.
    """
    response = AuthService(db).register(request)

    AuditService(db).log(
        action=AuditAction.USER_REGISTERED,
        resource_type="user",
        resource_id=response.user.id,
        actor_id=response.user.id,
        after={"email": response.user.email, "role": response.user.role},
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Registration successful", data=response)


@router.post("/login", response_model=ApiResponse[AuthResponse])
def login(
    request: LoginRequest,
    db: DbSession,
    client: ClientContext,
):
    """
    Authenticate user and return access/refresh tokens.
    """
    response = AuthService(db).login(request)

    AuditService(db).log(
        action=AuditAction.USER_LOGIN,
        resource_type="user",
        resource_id=response.user.id,
        actor_id=response.user.id,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Login successful", data=response)


@router.post("/refresh", response_model=ApiResponse[TokenResponse])
def refresh_token(
    request: RefreshTokenRequest,
    db: DbSession,
):
    """
    Exchange the current refresh token for a new pair.
    The presented token stops working once rotated.
    """
    tokens = AuthService(db).refresh(request.refresh_token)
    return ApiResponse(message="Token refreshed", data=tokens)


@router.post("/logout", response_model=ApiResponse[None])
def logout(
    current_user: CurrentUser,
    db: DbSession,
    client: ClientContext,
):
    """
    Revoke every access and refresh token of the current user.
    """
    AuthService(db).logout(current_user)

    AuditService(db).log(
        action=AuditAction.USER_LOGOUT,
        resource_type="user",
        resource_id=current_user.id,
        actor_id=current_user.id,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Logged out successfully")


@router.get("/profile", response_model=ApiResponse[UserResponse])
def get_profile(current_user: CurrentUser, db: DbSession):
    return ApiResponse(data=AuthService(db).get_profile(current_user))


@router.put("/profile", response_model=ApiResponse[UserResponse])
def update_profile(
    request: ProfileUpdate,
    current_user: CurrentUser,
    db: DbSession,
    client: ClientContext,
):
    profile, before = AuthService(db).update_profile(current_user, request)

    AuditService(db).log(
        action=AuditAction.PROFILE_UPDATED,
        resource_type="user",
        resource_id=current_user.id,
        actor_id=current_user.id,
        before=before,
        after=request.model_dump(exclude_unset=True),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Profile updated", data=profile)


@router.post("/change-password", response_model=ApiResponse[None])
def change_password(
    request: PasswordChange,
    current_user: CurrentUser,
    db: DbSession,
    client: ClientContext,
):
    """
    Change password. All existing sessions are revoked; sign in again afterwards.
    """
    AuthService(db).change_password(current_user, request.current_password, request.new_password)

    AuditService(db).log(
        action=AuditAction.PASSWORD_CHANGED,
        resource_type="user",
        resource_id=current_user.id,
        actor_id=current_user.id,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Password changed successfully. Please log in again.")
