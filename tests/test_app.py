"""Application wiring tests: health, request IDs, error envelope, pagination."""
from conftest import API, make_subject


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_request_id_is_echoed_or_generated(client):
    assert client.get("/health", headers={"X-Request-ID": "abc-123"}).headers["X-Request-ID"] == "abc-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_not_found_uses_error_envelope(client, admin_headers):
    response = client.get(f"{API}/subjects/999", headers=admin_headers)
    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "NOT_FOUND"
    assert body["error"]["details"] == {"identifier": "999"}


def test_validation_errors_list_fields(client, admin_headers):
    response = client.post(f"{API}/subjects", headers=admin_headers, json={"name": "No code"})
    assert response.status_code == 422
    errors = response.json()["error"]["details"]["errors"]
    assert any("code" in error["loc"] for error in errors)


def test_pagination_meta(client, admin_headers):
    for i in range(5):
        make_subject(f"SUB{i}")

    body = client.get(f"{API}/subjects", headers=admin_headers, params={"page": 2, "limit": 2}).json()
    assert [s["code"] for s in body["data"]] == ["SUB2", "SUB3"]
    assert body["meta"]["pagination"] == {
        "page": 2,
        "limit": 2,
        "total": 5,
        "totalPages": 3,
        "hasNext": True,
        "hasPrev": True,
    }


def test_page_size_is_bounded(client, admin_headers):
    response = client.get(f"{API}/subjects", headers=admin_headers, params={"limit": 1000})
    assert response.status_code == 422
