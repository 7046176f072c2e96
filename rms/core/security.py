"""Security utilities for authentication and authorization."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from rms.core.config import settings
from rms.core.exceptions import InvalidTokenError

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class TokenPair:
    """Access/refresh token pair issued together."""

    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class TokenClaims:
    """Decoded, verified token claims."""

    user_id: int
    token_version: int
    token_type: str
    role: str | None = None


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password, rounds=settings.BCRYPT_ROUNDS)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    user_id: int,
    role: str,
    token_version: int,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token."""
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "ver": token_version,
        "exp": expire,
        "type": ACCESS_TOKEN_TYPE,
    }

    return jwt.encode(
        to_encode,
        settings.JWT_ACCESS_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )


def create_refresh_token(
    user_id: int,
    token_version: int,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT refresh token.

    Each token carries a random ``jti`` so two tokens issued within the same
    second are still distinct strings.
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS
        )

    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "ver": token_version,
        "exp": expire,
        "type": REFRESH_TOKEN_TYPE,
        "jti": str(uuid.uuid4()),
    }

    return jwt.encode(
        to_encode,
        settings.JWT_REFRESH_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )


def issue_token_pair(user_id: int, role: str, token_version: int) -> TokenPair:
    """Issue a fresh access/refresh pair bound to the given token version."""
    return TokenPair(
        access_token=create_access_token(user_id, role, token_version),
        refresh_token=create_refresh_token(user_id, token_version),
    )


def _decode(token: str, secret: str, expected_type: str) -> TokenClaims:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise InvalidTokenError("Token expired")
    except JWTError:
        raise InvalidTokenError("Token signature or format invalid")

    if payload.get("type") != expected_type:
        raise InvalidTokenError(f"Expected {expected_type} token")

    try:
        user_id = int(payload["sub"])
        token_version = int(payload["ver"])
    except (KeyError, TypeError, ValueError):
        raise InvalidTokenError("Token payload incomplete")

    return TokenClaims(
        user_id=user_id,
        token_version=token_version,
        token_type=expected_type,
        role=payload.get("role"),
    )


def verify_access_token(token: str) -> TokenClaims:
    """Verify signature, expiry and type of an access token.

    Does not consult the store; revocation is checked by the caller.
    """
    return _decode(token, settings.JWT_ACCESS_SECRET_KEY, ACCESS_TOKEN_TYPE)


def verify_refresh_token(token: str) -> TokenClaims:
    """Verify signature, expiry and type of a refresh token."""
    return _decode(token, settings.JWT_REFRESH_SECRET_KEY, REFRESH_TOKEN_TYPE)
