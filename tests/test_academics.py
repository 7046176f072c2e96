"""Student, teacher, subject and class management tests."""
from conftest import API, PASSWORD, auth_headers, make_class, make_student, make_subject, make_teacher
from test_results import create


def student_payload(roll_no="cse001", **overrides):
    payload = {
        "firstName": "Sam",
        "lastName": "Student",
        "email": f"{roll_no}@school.edu",
        "password": PASSWORD,
        "rollNo": roll_no,
        "department": "CSE",
        "batch": "2026",
        "semester": 1,
    }
    payload.update(overrides)
    return payload


def test_create_subject_normalises_code(client, admin_headers):
    response = client.post(
        f"{API}/subjects",
        headers=admin_headers,
        json={"code": "math101", "name": "Mathematics", "maxMarks": 100, "passMarks": 35},
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["code"] == "MATH101"
    assert data["passMarks"] == 35.0

    duplicate = client.post(f"{API}/subjects", headers=admin_headers, json={"code": "MATH101", "name": "Again"})
    assert duplicate.status_code == 409


def test_subject_pass_marks_cannot_exceed_max(client, admin_headers):
    response = client.post(
        f"{API}/subjects",
        headers=admin_headers,
        json={"code": "X1", "name": "X", "maxMarks": 50, "passMarks": 60},
    )
    assert response.status_code == 422


def test_scheme_change_recomputes_existing_results(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    result_id = create(client, admin_headers, student_id, subject_id, 45).json()["data"]["id"]

    response = client.put(f"{API}/subjects/{subject_id}", headers=admin_headers, json={"maxMarks": 50, "passMarks": 20})
    assert response.status_code == 200
    assert response.json()["meta"]["recomputedResults"] == 1

    result = client.get(f"{API}/results/{result_id}", headers=admin_headers).json()["data"]
    assert result["percentage"] == 90.0
    assert result["grade"] == "A+"


def test_scheme_change_rejected_when_marks_exceed_new_max(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    create(client, admin_headers, student_id, subject_id, 80)

    response = client.put(f"{API}/subjects/{subject_id}", headers=admin_headers, json={"maxMarks": 50, "passMarks": 20})
    assert response.status_code == 422
    subject = client.get(f"{API}/subjects/{subject_id}", headers=admin_headers).json()["data"]
    assert subject["maxMarks"] == 100.0


def test_inactive_subject_rejects_marks(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    assert client.delete(f"{API}/subjects/{subject_id}", headers=admin_headers).status_code == 200
    assert create(client, admin_headers, student_id, subject_id, 50).status_code == 422


def test_create_student_with_class(client, admin_headers):
    class_id = make_class()
    response = client.post(f"{API}/students", headers=admin_headers, json=student_payload(classId=class_id))
    assert response.status_code == 201
    student = response.json()["data"]
    assert student["rollNo"] == "CSE001"
    assert student["classId"] == class_id
    assert student["user"]["role"] == "student"

    roster = client.get(f"{API}/classes/{class_id}", headers=admin_headers).json()["data"]
    assert roster["studentIds"] == [student["id"]]
    assert roster["currentStrength"] == 1

    login = client.post(f"{API}/auth/login", json={"email": "cse001@school.edu", "password": PASSWORD})
    assert login.status_code == 200


def test_duplicate_roll_number_conflicts(client, admin_headers):
    client.post(f"{API}/students", headers=admin_headers, json=student_payload())
    response = client.post(
        f"{API}/students", headers=admin_headers, json=student_payload(email="other@school.edu")
    )
    assert response.status_code == 409


def test_student_detail_includes_results_and_attendance(client, admin_headers):
    subject_id = make_subject()
    student_id, user_id = make_student("R001")
    create(client, admin_headers, student_id, subject_id, 77)

    detail = client.get(f"{API}/students/{student_id}", headers=auth_headers(user_id)).json()["data"]
    assert detail["rollNo"] == "R001"
    assert [r["grade"] for r in detail["recentResults"]] == ["B+"]
    assert detail["attendance"]["total"] == 0

    other_id, _ = make_student("R002")
    assert client.get(f"{API}/students/{other_id}", headers=auth_headers(user_id)).status_code == 403


def test_list_students_filters(client, admin_headers):
    class_id = make_class()
    make_student("R001", class_id=class_id, first_name="Alice")
    make_student("R002", first_name="Bob")

    listed = client.get(f"{API}/students", headers=admin_headers, params={"class_id": class_id}).json()
    assert [s["rollNo"] for s in listed["data"]] == ["R001"]
    searched = client.get(f"{API}/students", headers=admin_headers, params={"search": "bob"}).json()
    assert [s["rollNo"] for s in searched["data"]] == ["R002"]


def test_roster_moves_and_capacity(client, admin_headers):
    first_class = make_class("CSE-A")
    second_class = make_class("CSE-B", max_strength=1)
    student_id, _ = make_student("R001", class_id=first_class)
    other_id, _ = make_student("R002")

    response = client.post(
        f"{API}/classes/{second_class}/students", headers=admin_headers, json={"studentIds": [student_id]}
    )
    assert response.status_code == 200
    assert response.json()["data"]["studentIds"] == [student_id]
    first = client.get(f"{API}/classes/{first_class}", headers=admin_headers).json()["data"]
    assert first["studentIds"] == []

    full = client.post(
        f"{API}/classes/{second_class}/students", headers=admin_headers, json={"studentIds": [other_id]}
    )
    assert full.status_code == 422

    removed = client.request(
        "DELETE",
        f"{API}/classes/{second_class}/students",
        headers=admin_headers,
        json={"studentIds": [student_id]},
    )
    assert removed.status_code == 200
    assert removed.json()["data"]["studentIds"] == []


def test_roster_keeps_insertion_order(client, admin_headers):
    class_id = make_class()
    ids = [make_student(f"R00{i}")[0] for i in (1, 2, 3)]
    client.post(f"{API}/classes/{class_id}/students", headers=admin_headers, json={"studentIds": [ids[2], ids[0]]})
    client.post(f"{API}/classes/{class_id}/students", headers=admin_headers, json={"studentIds": [ids[1]]})

    roster = client.get(f"{API}/classes/{class_id}", headers=admin_headers).json()["data"]
    assert roster["studentIds"] == [ids[2], ids[0], ids[1]]


def test_deactivating_class_releases_students(client, admin_headers):
    class_id = make_class()
    student_id, _ = make_student("R001", class_id=class_id)

    assert client.delete(f"{API}/classes/{class_id}", headers=admin_headers).status_code == 200
    student = client.get(f"{API}/students/{student_id}", headers=admin_headers).json()["data"]
    assert student["classId"] is None

    response = client.post(
        f"{API}/classes/{class_id}/students", headers=admin_headers, json={"studentIds": [student_id]}
    )
    assert response.status_code == 422


def test_create_teacher_with_subjects(client, admin_headers):
    subject_id = make_subject()
    response = client.post(
        f"{API}/teachers",
        headers=admin_headers,
        json={
            "firstName": "Tom",
            "lastName": "Teacher",
            "email": "tom@school.edu",
            "password": PASSWORD,
            "employeeId": "EMP1",
            "department": "Maths",
            "subjectIds": [subject_id],
        },
    )
    assert response.status_code == 201
    teacher = response.json()["data"]
    assert [s["code"] for s in teacher["subjects"]] == ["MATH101"]
    assert teacher["user"]["role"] == "teacher"


def test_teacher_with_unknown_subject_not_found(client, admin_headers):
    response = client.post(
        f"{API}/teachers",
        headers=admin_headers,
        json={
            "firstName": "Tom",
            "lastName": "Teacher",
            "email": "tom@school.edu",
            "password": PASSWORD,
            "employeeId": "EMP1",
            "department": "Maths",
            "subjectIds": [404],
        },
    )
    assert response.status_code == 404


def test_deactivating_teacher_revokes_access(client, admin_headers):
    teacher_id, user_id = make_teacher("T001")
    headers = auth_headers(user_id)
    assert client.get(f"{API}/students", headers=headers).status_code == 200

    assert client.delete(f"{API}/teachers/{teacher_id}", headers=admin_headers).status_code == 200
    assert client.get(f"{API}/students", headers=headers).status_code == 401


def test_teachers_cannot_manage_academic_records(client):
    _, user_id = make_teacher("T001")
    headers = auth_headers(user_id)
    assert client.post(f"{API}/students", headers=headers, json=student_payload()).status_code == 403
    assert client.post(f"{API}/subjects", headers=headers, json={"code": "X", "name": "X"}).status_code == 403
    assert client.post(
        f"{API}/classes", headers=headers, json={"name": "A", "code": "A", "semester": 1}
    ).status_code == 403
