"""Authentication service."""

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rms.core.config import settings
from rms.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InvalidRefreshTokenError,
    NotFoundError,
    TokenRevokedError,
    ValidationError,
)
from rms.core.security import (
    TokenPair,
    hash_password,
    issue_token_pair,
    verify_password,
    verify_refresh_token,
)
from rms.models.user import User, UserRole
from rms.schemas.auth import (
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Authentication and session service.

    Session revocation works through ``User.token_version``: every token
    carries the version it was issued under and is rejected once the
    user's version moves on.
    """

    def __init__(self, db: Session):
        self.db = db

    def _token_response(self, pair: TokenPair) -> TokenResponse:
        return TokenResponse(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            token_type="bearer",
            expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    def _auth_response(self, user: User, pair: TokenPair) -> AuthResponse:
        return AuthResponse(
            **self._token_response(pair).model_dump(),
            user=UserResponse.model_validate(user),
        )

    def _issue(self, user: User) -> TokenPair:
        """Issue a pair for the user's current version and store the refresh token."""
        pair = issue_token_pair(user.id, user.role.value, user.token_version)
        user.refresh_token = pair.refresh_token
        return pair

    def get_user_by_email(self, email: str) -> User | None:
        return self.db.execute(
            select(User).where(User.email == email.lower())
        ).scalar_one_or_none()

    def get_user_by_id(self, user_id: int) -> User:
        """Get user by ID."""
        user = self.db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
        if not user:
            raise NotFoundError("User", str(user_id))
        return user

    def create_user(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        role: UserRole,
        phone: str | None = None,
    ) -> User:
        """Insert a user row; duplicate emails raise ``ConflictError``."""
        email = email.lower()
        if self.get_user_by_email(email):
            raise ConflictError("Email already registered", {"email": email})

        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=hash_password(password),
            role=role,
            phone=phone,
            is_active=True,
            token_version=0,
            login_count=0,
        )
        try:
            with self.db.begin_nested():
                self.db.add(user)
        except IntegrityError:
            raise ConflictError("Email already registered", {"email": email})
        return user

    def register(self, request: RegisterRequest) -> AuthResponse:
        """Self-registration.

        Only the very first account may register itself as admin; later
        admins are created by an existing admin.
        """
        if request.role == UserRole.ADMIN:
            admin_count = self.db.execute(
                select(func.count()).select_from(User).where(User.role == UserRole.ADMIN)
            ).scalar() or 0
            if admin_count:
                raise AuthorizationError("Admin accounts cannot be self-registered")

        user = self.create_user(
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email,
            password=request.password,
            role=request.role,
            phone=request.phone,
        )
        pair = self._issue(user)
        self.db.flush()
        self.db.refresh(user)
        logger.info(f"Registered user {user.id} with role {user.role.value}")
        return self._auth_response(user, pair)

    def login(self, request: LoginRequest) -> AuthResponse:
        """Authenticate user and return tokens."""
        user = self.get_user_by_email(request.email)

        if not user:
            raise AuthenticationError("Unknown email")

        if not verify_password(request.password, user.password_hash):
            raise AuthenticationError("Password mismatch")

        if not user.is_active:
            raise AuthenticationError("User account is deactivated")

        user.last_login_at = datetime.now(timezone.utc)
        user.login_count = (user.login_count or 0) + 1
        pair = self._issue(user)
        self.db.flush()
        self.db.refresh(user)
        return self._auth_response(user, pair)

    def refresh(self, refresh_token: str) -> TokenResponse:
        """Rotate a refresh token.

        The presented token must verify, match the single stored token and
        carry the user's current version; the stored token is replaced so
        the presented one cannot be used again.
        """
        claims = verify_refresh_token(refresh_token)

        user = self.db.execute(select(User).where(User.id == claims.user_id)).scalar_one_or_none()
        if not user or not user.is_active:
            raise AuthenticationError("User not found or deactivated")

        if user.refresh_token != refresh_token:
            raise InvalidRefreshTokenError("Refresh token does not match stored token")

        if claims.token_version != user.token_version:
            raise TokenRevokedError("Refresh token version revoked")

        pair = self._issue(user)
        self.db.flush()
        return self._token_response(pair)

    def logout(self, user: User) -> None:
        """Revoke every session of the user."""
        user.revoke_sessions()
        self.db.flush()

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        """Change password and revoke all existing sessions."""
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")
        if current_password == new_password:
            raise ValidationError("New password must differ from the current password")

        user.password_hash = hash_password(new_password)
        user.revoke_sessions()
        self.db.flush()

    def get_profile(self, user: User) -> UserResponse:
        return UserResponse.model_validate(user)

    def update_profile(self, user: User, request: ProfileUpdate) -> tuple[UserResponse, dict]:
        """Update own profile; returns the new profile and the changed fields' old values."""
        update_data = request.model_dump(exclude_unset=True)
        before = {field: getattr(user, field) for field in update_data}
        for field, value in update_data.items():
            setattr(user, field, value)
        self.db.flush()
        self.db.refresh(user)
        return UserResponse.model_validate(user), before
