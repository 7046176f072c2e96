"""Authentication and session revocation tests."""
from conftest import API, PASSWORD, auth_headers, make_admin, make_student


def register(client, email="new@school.edu", role="student", password=PASSWORD):
    return client.post(
        f"{API}/auth/register",
        json={"firstName": "New", "lastName": "User", "email": email, "password": password, "role": role},
    )


def login(client, email, password=PASSWORD):
    return client.post(f"{API}/auth/login", json={"email": email, "password": password})


def test_register_returns_tokens_and_profile(client):
    response = register(client, email="Mixed.Case@School.edu")
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["accessToken"]
    assert data["refreshToken"]
    assert data["tokenType"] == "bearer"
    assert data["user"]["email"] == "mixed.case@school.edu"
    assert data["user"]["role"] == "student"
    assert "passwordHash" not in data["user"]


def test_duplicate_email_conflicts(client):
    register(client)
    response = register(client, email="NEW@school.edu")
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


def test_only_first_admin_may_self_register(client):
    assert register(client, email="first@school.edu", role="admin").status_code == 201
    response = register(client, email="second@school.edu", role="admin")
    assert response.status_code == 403


def test_short_password_fails_validation(client):
    response = register(client, password="short")
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_login_failures_share_one_message(client):
    make_admin("known@school.edu")
    wrong_password = login(client, "known@school.edu", "not-the-password")
    unknown_email = login(client, "nobody@school.edu")
    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()


def test_login_tracks_metadata(client):
    make_admin("known@school.edu")
    login(client, "known@school.edu")
    data = login(client, "known@school.edu").json()["data"]
    assert data["user"]["loginCount"] == 2
    assert data["user"]["lastLoginAt"] is not None


def test_missing_or_bad_token_rejected(client):
    assert client.get(f"{API}/auth/profile").status_code == 401
    response = client.get(f"{API}/auth/profile", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


def test_refresh_rotates_and_rejects_stale_token(client):
    tokens = register(client).json()["data"]
    first = client.post(f"{API}/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert first.status_code == 200
    rotated = first.json()["data"]["refreshToken"]
    assert rotated != tokens["refreshToken"]

    stale = client.post(f"{API}/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert stale.status_code == 401

    again = client.post(f"{API}/auth/refresh", json={"refreshToken": rotated})
    assert again.status_code == 200


def test_access_token_cannot_be_used_as_refresh_token(client):
    tokens = register(client).json()["data"]
    response = client.post(f"{API}/auth/refresh", json={"refreshToken": tokens["accessToken"]})
    assert response.status_code == 401


def test_logout_revokes_access_and_refresh_tokens(client):
    tokens = register(client).json()["data"]
    headers = {"Authorization": f"Bearer {tokens['accessToken']}"}

    assert client.post(f"{API}/auth/logout", headers=headers).status_code == 200
    assert client.get(f"{API}/auth/profile", headers=headers).status_code == 401
    response = client.post(f"{API}/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert response.status_code == 401


def test_change_password_revokes_sessions(client):
    tokens = register(client).json()["data"]
    headers = {"Authorization": f"Bearer {tokens['accessToken']}"}

    response = client.post(
        f"{API}/auth/change-password",
        headers=headers,
        json={"currentPassword": PASSWORD, "newPassword": "Another123!"},
    )
    assert response.status_code == 200
    assert client.get(f"{API}/auth/profile", headers=headers).status_code == 401
    assert login(client, "new@school.edu").status_code == 401
    assert login(client, "new@school.edu", "Another123!").status_code == 200


def test_change_password_requires_current_password(client):
    tokens = register(client).json()["data"]
    headers = {"Authorization": f"Bearer {tokens['accessToken']}"}
    response = client.post(
        f"{API}/auth/change-password",
        headers=headers,
        json={"currentPassword": "wrong-password", "newPassword": "Another123!"},
    )
    assert response.status_code == 422


def test_profile_update(client):
    tokens = register(client).json()["data"]
    headers = {"Authorization": f"Bearer {tokens['accessToken']}"}
    response = client.put(f"{API}/auth/profile", headers=headers, json={"firstName": "Renamed"})
    assert response.status_code == 200
    assert response.json()["data"]["fullName"] == "Renamed User"


def test_deactivated_user_loses_access(client, admin_headers):
    _, user_id = make_student("R001")
    headers = auth_headers(user_id)
    assert client.get(f"{API}/auth/profile", headers=headers).status_code == 200

    assert client.delete(f"{API}/users/{user_id}", headers=admin_headers).status_code == 200
    assert client.get(f"{API}/auth/profile", headers=headers).status_code == 401
    assert login(client, "r001@school.edu").status_code == 401


def test_students_cannot_manage_users(client):
    _, user_id = make_student("R001")
    response = client.get(f"{API}/users", headers=auth_headers(user_id))
    assert response.status_code == 403
