"""Report, export and analytics tests."""
from io import BytesIO

from openpyxl import load_workbook

from conftest import API, auth_headers, make_class, make_student, make_subject, make_teacher
from test_results import create


def test_class_report_aggregates_per_student(client, admin_headers):
    class_id = make_class()
    subject_id = make_subject()
    students = [make_student(f"R00{i}", class_id=class_id)[0] for i in (1, 2, 3)]
    for student_id, marks in zip(students, (60, 90, 40)):
        create(client, admin_headers, student_id, subject_id, marks)
    # Enrolled but without results
    make_student("R004", class_id=class_id)

    response = client.get(f"{API}/reports/classes/{class_id}", headers=admin_headers)
    assert response.status_code == 200
    report = response.json()["data"]
    assert [s["rollNo"] for s in report["students"]] == ["R002", "R001", "R003"]
    assert report["statistics"] == {
        "totalStudents": 3,
        "passedStudents": 3,
        "failedStudents": 0,
        "passPercentage": 100.0,
        "classAverage": 63.33,
    }


def test_class_report_student_fails_on_any_failed_result(client, admin_headers):
    class_id = make_class()
    maths = make_subject("MATH101")
    physics = make_subject("PHY101")
    student_id, _ = make_student("R001", class_id=class_id)
    create(client, admin_headers, student_id, maths, 95)
    create(client, admin_headers, student_id, physics, 20)

    report = client.get(f"{API}/reports/classes/{class_id}", headers=admin_headers).json()["data"]
    summary = report["students"][0]
    assert summary["passed"] is False
    assert summary["averageMarks"] == 57.5
    assert summary["totalSubjects"] == 2
    assert report["statistics"]["passPercentage"] == 0.0


def test_class_report_filters_by_semester(client, admin_headers):
    class_id = make_class()
    subject_id = make_subject()
    student_id, _ = make_student("R001", class_id=class_id)
    create(client, admin_headers, student_id, subject_id, 80, semester=1)
    create(client, admin_headers, student_id, subject_id, 30, semester=2)

    report = client.get(
        f"{API}/reports/classes/{class_id}", headers=admin_headers, params={"semester": 1}
    ).json()["data"]
    assert report["semester"] == 1
    assert report["students"][0]["averageMarks"] == 80.0
    assert report["statistics"]["passedStudents"] == 1


def test_student_report_totals(client, admin_headers):
    maths = make_subject("MATH101")
    lab = make_subject("LAB101", max_marks="50", pass_marks="20")
    student_id, _ = make_student("R001")
    create(client, admin_headers, student_id, maths, 85)
    create(client, admin_headers, student_id, lab, 40)

    report = client.get(f"{API}/reports/students/{student_id}", headers=admin_headers).json()["data"]
    assert report["totalSubjects"] == 2
    assert report["totalMarks"] == 125.0
    assert report["maxPossibleMarks"] == 150.0
    assert report["percentage"] == 83.33
    # A (9) and A (9)
    assert report["cgpa"] == 9.0
    assert report["passed"] is True
    assert [r["subjectCode"] for r in report["results"]] == ["LAB101", "MATH101"]


def test_reports_count_each_exam_as_a_result(client, admin_headers):
    class_id = make_class()
    subject_id = make_subject()
    student_id, _ = make_student("R001", class_id=class_id)
    create(client, admin_headers, student_id, subject_id, 80, exam_type="mid")
    create(client, admin_headers, student_id, subject_id, 60, exam_type="final")

    report = client.get(f"{API}/reports/students/{student_id}", headers=admin_headers).json()["data"]
    assert report["totalSubjects"] == 2
    assert report["maxPossibleMarks"] == 200.0
    # A (9) and B (7)
    assert report["cgpa"] == 8.0

    summary = client.get(f"{API}/reports/classes/{class_id}", headers=admin_headers).json()["data"]
    assert summary["students"][0]["totalSubjects"] == 2

    ranked = client.get(
        f"{API}/analytics/top-performers", headers=admin_headers, params={"class_id": class_id}
    ).json()["data"]
    assert ranked[0]["totalSubjects"] == 2


def test_student_without_results_counts_as_passed(client, admin_headers):
    student_id, _ = make_student("R001")
    report = client.get(f"{API}/reports/students/{student_id}", headers=admin_headers).json()["data"]
    assert report["results"] == []
    assert report["passed"] is True
    assert report["percentage"] == 0.0


def test_students_only_read_their_own_report(client, admin_headers):
    mine, my_user = make_student("R001")
    theirs, _ = make_student("R002")
    headers = auth_headers(my_user)

    assert client.get(f"{API}/reports/students/{mine}", headers=headers).status_code == 200
    assert client.get(f"{API}/reports/students/{theirs}", headers=headers).status_code == 403
    assert client.get(f"{API}/reports/classes/{make_class()}", headers=headers).status_code == 403


def test_unknown_student_report_is_not_found(client, admin_headers):
    assert client.get(f"{API}/reports/students/404", headers=admin_headers).status_code == 404


def test_student_report_export(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    create(client, admin_headers, student_id, subject_id, 85)

    response = client.get(f"{API}/reports/students/{student_id}/export", headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert "student_report_R001.xlsx" in response.headers["content-disposition"]

    workbook = load_workbook(BytesIO(response.content))
    values = [cell for row in workbook.active.iter_rows(values_only=True) for cell in row if cell is not None]
    assert "MATH101" in values


def test_class_report_export(client, admin_headers):
    class_id = make_class()
    subject_id = make_subject()
    student_id, _ = make_student("R001", class_id=class_id)
    create(client, admin_headers, student_id, subject_id, 70)

    response = client.get(f"{API}/reports/classes/{class_id}/export", headers=admin_headers)
    assert response.status_code == 200
    workbook = load_workbook(BytesIO(response.content))
    values = [cell for row in workbook.active.iter_rows(values_only=True) for cell in row if cell is not None]
    assert "R001" in values


def test_top_performers_ranked_by_average(client, admin_headers):
    class_id = make_class()
    subject_id = make_subject()
    ids = [make_student(f"R00{i}", class_id=class_id)[0] for i in (1, 2, 3)]
    for student_id, marks in zip(ids, (70, 95, 82)):
        create(client, admin_headers, student_id, subject_id, marks)

    response = client.get(
        f"{API}/analytics/top-performers",
        headers=admin_headers,
        params={"class_id": class_id, "limit": 2},
    )
    assert response.status_code == 200
    ranked = response.json()["data"]
    assert [p["rollNo"] for p in ranked] == ["R002", "R003"]
    assert ranked[0]["averageMarks"] == 95.0


def test_subject_distribution(client, admin_headers):
    subject_id = make_subject()
    for i, marks in enumerate((95, 92, 55, 10), start=1):
        student_id, _ = make_student(f"R00{i}")
        create(client, admin_headers, student_id, subject_id, marks)

    data = client.get(
        f"{API}/analytics/subjects/{subject_id}/distribution", headers=admin_headers
    ).json()["data"]
    buckets = {b["grade"]: b["count"] for b in data["distribution"]}
    assert buckets == {"A+": 2, "C": 1, "F": 1}
    assert data["stats"]["totalResults"] == 4
    assert data["stats"]["highestMarks"] == 95.0
    assert data["stats"]["lowestMarks"] == 10.0
    assert data["stats"]["passedCount"] == 3
    assert data["stats"]["passRate"] == 75.0


def test_trends_group_results(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    create(client, admin_headers, student_id, subject_id, 80, exam_type="mid")
    create(client, admin_headers, student_id, subject_id, 60, exam_type="final")

    points = client.get(f"{API}/analytics/trends", headers=admin_headers).json()["data"]
    assert len(points) == 1
    assert points[0]["totalResults"] == 2
    assert points[0]["averageMarks"] == 70.0
    assert points[0]["passRate"] == 100.0


def test_overview_is_admin_only(client, admin_headers):
    subject_id = make_subject()
    student_id, _ = make_student("R001")
    _, teacher_user = make_teacher("T001", [subject_id])
    create(client, admin_headers, student_id, subject_id, 30)

    data = client.get(f"{API}/analytics/overview", headers=admin_headers).json()["data"]
    assert data["totalStudents"] == 1
    assert data["totalTeachers"] == 1
    assert data["totalResults"] == 1
    assert data["pendingApprovals"] == 1
    assert data["overallPassRate"] == 0.0

    assert client.get(f"{API}/analytics/overview", headers=auth_headers(teacher_user)).status_code == 403
