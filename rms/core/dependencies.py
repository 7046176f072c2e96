"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, Header, Query, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from rms.core.config import settings
from rms.core.database import get_db
from rms.core.exceptions import AuthenticationError, AuthorizationError, TokenRevokedError
from rms.core.security import verify_access_token
from rms.models.student import Student
from rms.models.user import User, UserRole

# Permission keys granted to each role
ROLE_PERMISSIONS: dict[UserRole, frozenset[str]] = {
    UserRole.ADMIN: frozenset({
        "manage:users",
        "manage:students",
        "manage:teachers",
        "manage:classes",
        "manage:subjects",
        "enter:marks",
        "approve:results",
        "view:all-results",
        "manage:attendance",
        "view:analytics",
        "manage:settings",
        "view:audit-logs",
    }),
    UserRole.TEACHER: frozenset({
        "view:assigned-students",
        "enter:marks",
        "view:assigned-results",
        "manage:attendance",
        "view:assigned-analytics",
    }),
    UserRole.STUDENT: frozenset({
        "view:own-results",
        "view:own-attendance",
        "view:own-profile",
    }),
}


def has_permission(user: User, permission_key: str) -> bool:
    return permission_key in ROLE_PERMISSIONS.get(user.role, frozenset())


def get_current_user(
    db: Annotated[Session, Depends(get_db)],
    authorization: str | None = Header(None, description="Bearer token"),
) -> User:
    """Extract and validate the current user from JWT token.

    The token is checked for signature, expiry and type first; the user's
    current ``token_version`` must then match the one in the token.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("Missing or malformed authorization header")

    token = authorization[7:]  # Remove "Bearer " prefix
    claims = verify_access_token(token)

    user = db.execute(select(User).where(User.id == claims.user_id)).scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    if claims.token_version != user.token_version:
        raise TokenRevokedError("Access token version revoked")

    return user


def require_roles(*roles: UserRole):
    """Dependency factory that requires one of the given roles."""

    def check_role(user: Annotated[User, Depends(get_current_user)]) -> User:
        if user.role not in roles:
            raise AuthorizationError(
                f"This action requires role: {', '.join(r.value for r in roles)}"
            )
        return user

    return check_role


def require_permission(permission_key: str):
    """Dependency factory that requires a specific permission."""

    def check_permission(user: Annotated[User, Depends(get_current_user)]) -> User:
        if not has_permission(user, permission_key):
            raise AuthorizationError(
                f"Permission '{permission_key}' required",
                required_permission=permission_key,
            )
        return user

    return check_permission


def get_student_profile(db: Session, user: User) -> Student | None:
    return db.execute(select(Student).where(Student.user_id == user.id)).scalar_one_or_none()


def ensure_student_access(db: Session, user: User, student_id: int) -> None:
    """Students may only read their own records."""
    if user.role != UserRole.STUDENT:
        return
    student = get_student_profile(db, user)
    if student is None or student.id != student_id:
        raise AuthorizationError("Students can only access their own records")


class Pagination:
    """Page/limit query parameters."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    ):
        self.page = page
        self.limit = limit


class RequestContext:
    """Client details recorded in audit entries."""

    def __init__(self, request: Request):
        self.ip_address = request.client.host if request.client else None
        self.user_agent = request.headers.get("user-agent")


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
StaffUser = Annotated[User, Depends(require_roles(UserRole.ADMIN, UserRole.TEACHER))]
PageParams = Annotated[Pagination, Depends()]
ClientContext = Annotated[RequestContext, Depends()]
