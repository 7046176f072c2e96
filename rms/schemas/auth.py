"""Authentication schemas."""

from datetime import datetime

from pydantic import EmailStr, Field

from rms.models.user import UserRole
from rms.schemas.common import BaseSchema


class RegisterRequest(BaseSchema):
    """Self-registration request."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: UserRole = UserRole.STUDENT
    phone: str | None = None


class LoginRequest(BaseSchema):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseSchema):
    """Refresh token request schema."""

    refresh_token: str


class TokenResponse(BaseSchema):
    """Token pair response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class UserResponse(BaseSchema):
    """Public user profile; never exposes hashes or session state."""

    id: int
    first_name: str
    last_name: str
    full_name: str
    email: str
    role: UserRole
    phone: str | None
    avatar_url: str | None
    is_active: bool
    is_email_verified: bool
    last_login_at: datetime | None
    login_count: int
    created_at: datetime
    updated_at: datetime


class AuthResponse(TokenResponse):
    """Login/registration response: profile plus tokens."""

    user: UserResponse


class ProfileUpdate(BaseSchema):
    """Fields a user may change on their own profile."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = None
    avatar_url: str | None = None


class PasswordChange(BaseSchema):
    """Password change schema."""

    current_password: str
    new_password: str = Field(..., min_length=8)


class UserSummary(BaseSchema):
    """Compact user reference embedded in other responses."""

    id: int
    full_name: str
    email: str
    role: UserRole
    is_active: bool


class AdminUserUpdate(BaseSchema):
    """Fields an admin may change on any user."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = None
    role: UserRole | None = None
    is_active: bool | None = None
    is_email_verified: bool | None = None


class UserFilter(BaseSchema):
    search: str | None = None
    role: UserRole | None = None
    is_active: bool | None = None
