"""Marks entry, approval and visibility tests."""
from conftest import API, auth_headers, make_student, make_subject, make_teacher


def enter(client, headers, subject_id, entries, semester=1, exam_type="final"):
    return client.post(
        f"{API}/results/bulk",
        headers=headers,
        json={"subjectId": subject_id, "semester": semester, "examType": exam_type, "entries": entries},
    )


def create(client, headers, student_id, subject_id, marks, semester=1, exam_type="final"):
    return client.post(
        f"{API}/results",
        headers=headers,
        json={
            "studentId": student_id,
            "subjectId": subject_id,
            "semester": semester,
            "examType": exam_type,
            "marksObtained": marks,
        },
    )


def test_create_result_derives_grade(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")

    response = create(client, admin_headers, student_id, subject_id, 85)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["percentage"] == 85.0
    assert data["grade"] == "A"
    assert data["gradePoint"] == 9.0
    assert data["isPassed"] is True
    assert data["isApproved"] is False


def test_failing_result_on_custom_scheme(client, admin_headers):
    subject_id = make_subject("LAB1", max_marks="50", pass_marks="20")
    student_id, _ = make_student("R001")

    data = create(client, admin_headers, student_id, subject_id, 15).json()["data"]
    assert data["percentage"] == 30.0
    assert data["grade"] == "F"
    assert data["gradePoint"] == 0.0
    assert data["isPassed"] is False


def test_duplicate_result_conflicts(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    create(client, admin_headers, student_id, subject_id, 70)

    response = create(client, admin_headers, student_id, subject_id, 75)
    assert response.status_code == 409

    # A different exam type is a different result
    assert create(client, admin_headers, student_id, subject_id, 75, exam_type="mid").status_code == 201


def test_marks_above_maximum_rejected(client, admin_headers):
    subject_id = make_subject(max_marks="50", pass_marks="20")
    student_id, _ = make_student("R001")
    response = create(client, admin_headers, student_id, subject_id, 51)
    assert response.status_code == 422


def test_bulk_entry_isolates_failures(client, admin_headers):
    subject_id = make_subject()
    first, _ = make_student("R001")
    second, _ = make_student("R002")

    response = enter(
        client,
        admin_headers,
        subject_id,
        [
            {"studentId": first, "marksObtained": 91},
            {"studentId": 9999, "marksObtained": 50},
            {"studentId": second, "marksObtained": 120},
        ],
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["created"] == 1
    assert data["failed"] == 2
    assert {e["studentId"] for e in data["errors"]} == {9999, second}
    assert data["results"][0]["grade"] == "A+"

    listed = client.get(f"{API}/results", headers=admin_headers).json()
    assert listed["meta"]["pagination"]["total"] == 1


def test_bulk_entry_updates_existing_results(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    enter(client, admin_headers, subject_id, [{"studentId": student_id, "marksObtained": 30}])

    data = enter(client, admin_headers, subject_id, [{"studentId": student_id, "marksObtained": 65}]).json()["data"]
    assert data["created"] == 0
    assert data["updated"] == 1
    assert data["results"][0]["grade"] == "B"
    assert data["results"][0]["isPassed"] is True


def test_bulk_entry_rejects_repeated_student(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")

    response = enter(
        client,
        admin_headers,
        subject_id,
        [{"studentId": student_id, "marksObtained": 80}, {"studentId": student_id, "marksObtained": 95}],
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    listed = client.get(f"{API}/results", headers=admin_headers).json()
    assert listed["meta"]["pagination"]["total"] == 0


def test_update_recomputes_grade(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    result_id = create(client, admin_headers, student_id, subject_id, 35).json()["data"]["id"]

    response = client.put(f"{API}/results/{result_id}", headers=admin_headers, json={"marksObtained": 72})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["grade"] == "B+"
    assert data["isPassed"] is True


def test_approval_notifies_student_and_locks_result(client, admin_headers):
    subject_id = make_subject()
    student_id, user_id = make_student("R001")
    result_id = create(client, admin_headers, student_id, subject_id, 88).json()["data"]["id"]

    response = client.patch(f"{API}/results/{result_id}/approve", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["isApproved"] is True
    assert response.json()["data"]["approvedAt"] is not None

    assert client.patch(f"{API}/results/{result_id}/approve", headers=admin_headers).status_code == 422
    update = client.put(f"{API}/results/{result_id}", headers=admin_headers, json={"marksObtained": 90})
    assert update.status_code == 422

    student_headers = auth_headers(user_id)
    notifications = client.get(f"{API}/notifications", headers=student_headers).json()
    assert notifications["meta"]["pagination"]["total"] == 1
    notification = notifications["data"][0]
    assert notification["priority"] == "high"
    assert notification["status"] == "sent"

    stats = client.get(f"{API}/notifications/stats", headers=student_headers).json()["data"]
    assert stats == {"total": 1, "unread": 1, "read": 0}
    client.patch(f"{API}/notifications/{notification['id']}/read", headers=student_headers)
    stats = client.get(f"{API}/notifications/stats", headers=student_headers).json()["data"]
    assert stats["unread"] == 0


def test_only_admins_approve_or_delete(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    _, teacher_user = make_teacher("T001", [subject_id])
    teacher_headers = auth_headers(teacher_user)
    result_id = create(client, teacher_headers, student_id, subject_id, 60).json()["data"]["id"]

    assert client.patch(f"{API}/results/{result_id}/approve", headers=teacher_headers).status_code == 403
    assert client.delete(f"{API}/results/{result_id}", headers=teacher_headers).status_code == 403
    assert client.delete(f"{API}/results/{result_id}", headers=admin_headers).status_code == 200
    assert client.get(f"{API}/results/{result_id}", headers=admin_headers).status_code == 404


def test_teacher_limited_to_assigned_subjects(client, admin_headers):
    assigned = make_subject("MATH101")
    other = make_subject("PHY101")
    student_id, _ = make_student("R001")
    _, teacher_user = make_teacher("T001", [assigned])
    teacher_headers = auth_headers(teacher_user)

    assert create(client, teacher_headers, student_id, assigned, 70).status_code == 201
    assert create(client, teacher_headers, student_id, other, 70).status_code == 403

    other_result = create(client, admin_headers, student_id, other, 70).json()["data"]["id"]
    listed = client.get(f"{API}/results", headers=teacher_headers).json()
    assert [r["subjectId"] for r in listed["data"]] == [assigned]
    assert client.get(f"{API}/results/{other_result}", headers=teacher_headers).status_code == 404


def test_students_see_only_their_own_results(client, admin_headers):
    subject_id = make_subject()
    mine, my_user = make_student("R001")
    theirs, _ = make_student("R002")
    create(client, admin_headers, mine, subject_id, 80)
    their_result = create(client, admin_headers, theirs, subject_id, 90).json()["data"]["id"]

    headers = auth_headers(my_user)
    listed = client.get(f"{API}/results", headers=headers).json()
    assert [r["studentId"] for r in listed["data"]] == [mine]

    # Filtering on someone else does not widen visibility
    listed = client.get(f"{API}/results", headers=headers, params={"student_id": theirs}).json()
    assert listed["data"] == []
    assert client.get(f"{API}/results/{their_result}", headers=headers).status_code == 404
    assert create(client, headers, mine, subject_id, 100, exam_type="mid").status_code == 403


def test_mutations_are_audited(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    result_id = create(client, admin_headers, student_id, subject_id, 50).json()["data"]["id"]
    client.put(f"{API}/results/{result_id}", headers=admin_headers, json={"marksObtained": 55})

    logs = client.get(
        f"{API}/audit-logs",
        headers=admin_headers,
        params={"resource_type": "result", "action": "UPDATE_MARKS"},
    ).json()
    assert logs["meta"]["pagination"]["total"] == 1
    entry = logs["data"][0]
    assert entry["before"]["marks_obtained"] == 50.0
    assert entry["after"]["marks_obtained"] == 55.0
    assert entry["resourceId"] == str(result_id)
