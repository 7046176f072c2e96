"""Runtime configuration tests."""
from conftest import API, auth_headers, make_student, make_subject, seed_config
from test_results import create

from rms.services.config import DEFAULT_CONFIGS, ConfigService


def test_seeding_is_idempotent(db):
    assert ConfigService(db).seed_defaults() == len(DEFAULT_CONFIGS)
    assert ConfigService(db).seed_defaults() == 0
    assert ConfigService(db).get_value("ATTENDANCE_THRESHOLD") == 75


def test_grade_bands_fall_back_to_defaults(db):
    bands = ConfigService(db).get_grade_bands()
    assert bands[0].grade == "A+"


def test_list_and_get_configs(client, admin_headers):
    seed_config()
    listed = client.get(f"{API}/config", headers=admin_headers).json()["data"]
    assert [c["key"] for c in listed] == sorted(c["key"] for c in DEFAULT_CONFIGS)

    grading = client.get(f"{API}/config", headers=admin_headers, params={"category": "grading"}).json()["data"]
    assert {c["key"] for c in grading} == {"GRADE_MAPPING", "PASSING_PERCENTAGE"}

    entry = client.get(f"{API}/config/grade_mapping", headers=admin_headers).json()["data"]
    assert entry["value"]["A+"]["gradePoint"] == 10.0
    assert client.get(f"{API}/config/NOPE", headers=admin_headers).status_code == 404


def test_custom_grade_mapping_applies_to_new_results(client, admin_headers):
    seed_config()
    mapping = {
        "PASS": {"min": 50, "max": 100, "gradePoint": 4},
        "FAIL": {"min": 0, "max": 49.99, "gradePoint": 0},
    }
    response = client.put(f"{API}/config/GRADE_MAPPING", headers=admin_headers, json={"value": mapping})
    assert response.status_code == 200

    subject_id = make_subject()
    student_id, _ = make_student("R001")
    data = create(client, admin_headers, student_id, subject_id, 85).json()["data"]
    assert data["grade"] == "PASS"
    assert data["gradePoint"] == 4.0

    logs = client.get(
        f"{API}/audit-logs", headers=admin_headers, params={"action": "CONFIG_UPDATED"}
    ).json()["data"]
    assert logs[0]["resourceId"] == "GRADE_MAPPING"
    assert logs[0]["before"]["value"]["A+"]["min"] == 90.0


def test_invalid_config_values_rejected(client, admin_headers):
    seed_config()
    no_zero_band = {"A": {"min": 50, "max": 100, "gradePoint": 4}}
    assert client.put(
        f"{API}/config/GRADE_MAPPING", headers=admin_headers, json={"value": no_zero_band}
    ).status_code == 422
    assert client.put(
        f"{API}/config/EXAM_TYPES", headers=admin_headers, json={"value": ["mid", "oral"]}
    ).status_code == 422
    assert client.put(
        f"{API}/config/ATTENDANCE_THRESHOLD", headers=admin_headers, json={"value": 150}
    ).status_code == 422


def test_attendance_threshold_follows_config(client, admin_headers):
    seed_config()
    client.put(f"{API}/config/ATTENDANCE_THRESHOLD", headers=admin_headers, json={"value": 50})
    student_id, _ = make_student("R001")
    summary = client.get(f"{API}/attendance/summary/{student_id}", headers=admin_headers).json()["data"]
    assert summary["threshold"] == 50.0


def test_only_admins_update_config(client):
    seed_config()
    _, user_id = make_student("R001")
    headers = auth_headers(user_id)
    assert client.get(f"{API}/config", headers=headers).status_code == 200
    response = client.put(f"{API}/config/ATTENDANCE_THRESHOLD", headers=headers, json={"value": 10})
    assert response.status_code == 403
