"""Attendance tests."""
from conftest import API, auth_headers, make_student, make_subject, make_teacher


def mark(client, headers, subject_id, day, entries):
    return client.post(
        f"{API}/attendance/bulk",
        headers=headers,
        json={"subjectId": subject_id, "attendanceDate": day, "entries": entries},
    )


def test_bulk_marking_accepts_short_status_codes(client, admin_headers):
    subject_id = make_subject()
    first, _ = make_student("R001")
    second, _ = make_student("R002")

    response = mark(
        client,
        admin_headers,
        subject_id,
        "2026-03-02",
        [
            {"studentId": first, "status": "P"},
            {"studentId": second, "status": "absent"},
            {"studentId": 9999, "status": "P"},
        ],
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["created"] == 2
    assert data["failed"] == 1
    assert [r["status"] for r in data["records"]] == ["present", "absent"]
    assert data["records"][0]["subjectCode"] == "MATH101"


def test_bulk_marking_updates_same_day(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    mark(client, admin_headers, subject_id, "2026-03-02", [{"studentId": student_id, "status": "A"}])

    data = mark(
        client, admin_headers, subject_id, "2026-03-02", [{"studentId": student_id, "status": "LT"}]
    ).json()["data"]
    assert data["created"] == 0
    assert data["updated"] == 1
    assert data["records"][0]["status"] == "late"


def test_unknown_status_rejected(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    response = mark(client, admin_headers, subject_id, "2026-03-02", [{"studentId": student_id, "status": "X"}])
    assert response.status_code == 422


def test_bulk_marking_rejects_repeated_student(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    response = mark(
        client,
        admin_headers,
        subject_id,
        "2026-03-02",
        [{"studentId": student_id, "status": "P"}, {"studentId": student_id, "status": "A"}],
    )
    assert response.status_code == 422


def test_duplicate_single_record_conflicts(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    payload = {"studentId": student_id, "subjectId": subject_id, "attendanceDate": "2026-03-02", "status": "P"}

    assert client.post(f"{API}/attendance", headers=admin_headers, json=payload).status_code == 201
    assert client.post(f"{API}/attendance", headers=admin_headers, json=payload).status_code == 409


def test_summary_with_subject_breakdown(client, admin_headers):
    maths = make_subject("MATH101")
    physics = make_subject("PHY101")
    student_id, _ = make_student("R001")
    for day, status in (("2026-03-02", "P"), ("2026-03-03", "P"), ("2026-03-04", "A"), ("2026-03-05", "L")):
        mark(client, admin_headers, maths, day, [{"studentId": student_id, "status": status}])
    mark(client, admin_headers, physics, "2026-03-02", [{"studentId": student_id, "status": "P"}])

    summary = client.get(f"{API}/attendance/summary/{student_id}", headers=admin_headers).json()["data"]
    assert summary["total"] == 5
    assert summary["present"] == 3
    assert summary["absent"] == 1
    assert summary["leave"] == 1
    assert summary["percentage"] == 60.0
    assert summary["belowThreshold"] is True
    assert summary["threshold"] == 75.0
    by_subject = {s["subjectCode"]: s["percentage"] for s in summary["subjectWise"]}
    assert by_subject == {"MATH101": 50.0, "PHY101": 100.0}


def test_summary_for_one_subject_and_range(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    for day, status in (("2026-03-02", "A"), ("2026-03-03", "P"), ("2026-03-04", "P")):
        mark(client, admin_headers, subject_id, day, [{"studentId": student_id, "status": status}])

    summary = client.get(
        f"{API}/attendance/summary/{student_id}",
        headers=admin_headers,
        params={"subject_id": subject_id, "date_from": "2026-03-03"},
    ).json()["data"]
    assert summary["total"] == 2
    assert summary["percentage"] == 100.0
    assert summary["belowThreshold"] is False
    assert summary["subjectWise"] == []


def test_empty_summary(client, admin_headers):
    student_id, _ = make_student("R001")
    summary = client.get(f"{API}/attendance/summary/{student_id}", headers=admin_headers).json()["data"]
    assert summary["total"] == 0
    assert summary["percentage"] == 0.0
    assert summary["belowThreshold"] is False


def test_student_access_is_limited_to_own_records(client, admin_headers):
    subject_id = make_subject()
    mine, my_user = make_student("R001")
    theirs, _ = make_student("R002")
    mark(
        client,
        admin_headers,
        subject_id,
        "2026-03-02",
        [{"studentId": mine, "status": "P"}, {"studentId": theirs, "status": "A"}],
    )
    headers = auth_headers(my_user)

    listed = client.get(f"{API}/attendance", headers=headers).json()
    assert [r["studentId"] for r in listed["data"]] == [mine]
    assert client.get(f"{API}/attendance/summary/{theirs}", headers=headers).status_code == 403
    response = mark(client, headers, subject_id, "2026-03-03", [{"studentId": mine, "status": "P"}])
    assert response.status_code == 403


def test_teacher_updates_and_deletes_records(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    _, teacher_user = make_teacher("T001", [subject_id])
    headers = auth_headers(teacher_user)
    record_id = mark(
        client, headers, subject_id, "2026-03-02", [{"studentId": student_id, "status": "A"}]
    ).json()["data"]["records"][0]["id"]

    response = client.put(f"{API}/attendance/{record_id}", headers=headers, json={"status": "present"})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "present"

    assert client.delete(f"{API}/attendance/{record_id}", headers=headers).status_code == 200
    assert client.get(f"{API}/attendance/{record_id}", headers=headers).status_code == 404
