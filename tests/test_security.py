"""Token issuing and verification tests."""
from datetime import timedelta

import pytest
from conftest import API, make_admin

from rms.core.database import SessionLocal
from rms.core.exceptions import InvalidTokenError
from rms.core.security import (
    create_access_token,
    create_refresh_token,
    issue_token_pair,
    verify_access_token,
    verify_refresh_token,
)
from rms.models.user import User


def test_issued_tokens_verify_to_same_identity():
    pair = issue_token_pair(7, "teacher", 3)

    access = verify_access_token(pair.access_token)
    assert (access.user_id, access.role, access.token_version) == (7, "teacher", 3)
    assert access.token_type == "access"

    refresh = verify_refresh_token(pair.refresh_token)
    assert (refresh.user_id, refresh.token_version) == (7, 3)
    assert refresh.token_type == "refresh"


def test_refresh_tokens_are_unique():
    assert issue_token_pair(7, "teacher", 3).refresh_token != issue_token_pair(7, "teacher", 3).refresh_token


def test_expired_tokens_rejected():
    with pytest.raises(InvalidTokenError):
        verify_access_token(create_access_token(7, "teacher", 3, timedelta(seconds=-5)))
    with pytest.raises(InvalidTokenError):
        verify_refresh_token(create_refresh_token(7, 3, timedelta(seconds=-5)))


def test_token_types_are_not_interchangeable():
    pair = issue_token_pair(7, "student", 0)
    with pytest.raises(InvalidTokenError):
        verify_refresh_token(pair.access_token)
    with pytest.raises(InvalidTokenError):
        verify_access_token(pair.refresh_token)


def test_expired_access_token_gets_generic_401(client):
    user_id = make_admin()
    with SessionLocal() as session:
        user = session.get(User, user_id)
        token = create_access_token(user.id, user.role.value, user.token_version, timedelta(seconds=-5))

    response = client.get(f"{API}/auth/profile", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    error = response.json()["error"]
    assert error["code"] == "AUTHENTICATION_ERROR"
    assert error["message"] == "Invalid or expired credentials"
