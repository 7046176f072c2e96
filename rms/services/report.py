"""Student and class reports."""

from decimal import Decimal

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from rms.core.exceptions import NotFoundError
from rms.models.classroom import ClassEnrollment, SchoolClass
from rms.models.result import Result
from rms.models.student import Student
from rms.models.subject import Subject
from rms.models.user import User
from rms.schemas.report import (
    ClassReport,
    ClassStatistics,
    ClassStudentSummary,
    ReportResult,
    StudentReport,
)
from rms.services.grading import round2

ZERO = Decimal("0.00")


def _all_passed():
    """AND over ``is_passed``; NULL on an empty group."""
    return func.min(case((Result.is_passed.is_(True), 1), else_=0))


class ReportService:
    """Per-student and per-class result reports, aggregated in SQL."""

    def __init__(self, db: Session):
        self.db = db

    def _get_student(self, student_id: int) -> Student:
        student = self.db.execute(select(Student).where(Student.id == student_id)).scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", str(student_id))
        return student

    def _get_class(self, class_id: int) -> SchoolClass:
        school_class = self.db.execute(
            select(SchoolClass).where(SchoolClass.id == class_id)
        ).scalar_one_or_none()
        if not school_class:
            raise NotFoundError("Class", str(class_id))
        return school_class

    def student_report(self, student_id: int, semester: int | None = None) -> StudentReport:
        """Totals, CGPA and pass status across a student's results.

        A student with no results counts as passed.
        """
        student = self._get_student(student_id)

        conditions = [Result.student_id == student_id]
        if semester is not None:
            conditions.append(Result.semester == semester)

        rows = self.db.execute(
            select(Result, Subject)
            .join(Subject, Result.subject_id == Subject.id)
            .where(*conditions)
            .order_by(Result.semester, Subject.code, Result.exam_type)
        ).all()

        totals = self.db.execute(
            select(
                func.count(Result.id).label("subjects"),
                func.sum(Result.marks_obtained).label("marks"),
                func.sum(Subject.max_marks).label("max_marks"),
                func.avg(Result.grade_point).label("cgpa"),
                _all_passed().label("all_passed"),
            )
            .join(Subject, Result.subject_id == Subject.id)
            .where(*conditions)
        ).one()

        total_marks = round2(totals.marks or 0)
        max_possible = round2(totals.max_marks or 0)
        percentage = round2(total_marks / max_possible * 100) if max_possible else ZERO

        return StudentReport(
            student_id=student.id,
            roll_no=student.roll_no,
            name=student.full_name,
            department=student.department,
            batch=student.batch,
            semester=semester,
            results=[
                ReportResult(
                    result_id=result.id,
                    subject_id=subject.id,
                    subject_code=subject.code,
                    subject_name=subject.name,
                    semester=result.semester,
                    exam_type=result.exam_type,
                    marks_obtained=result.marks_obtained,
                    max_marks=subject.max_marks,
                    percentage=result.percentage,
                    grade=result.grade,
                    grade_point=result.grade_point,
                    is_passed=result.is_passed,
                    is_approved=result.is_approved,
                )
                for result, subject in rows
            ],
            total_subjects=totals.subjects or 0,
            total_marks=total_marks,
            max_possible_marks=max_possible,
            percentage=percentage,
            cgpa=round2(totals.cgpa) if totals.cgpa is not None else ZERO,
            passed=totals.all_passed is None or bool(totals.all_passed),
        )

    def class_report(self, class_id: int, semester: int | None = None) -> ClassReport:
        """Per-student aggregates for a class roster.

        Only students with at least one result appear; a student passed when
        every one of their results passed.
        """
        school_class = self._get_class(class_id)

        roster = select(ClassEnrollment.student_id).where(ClassEnrollment.class_id == class_id)
        conditions = [Result.student_id.in_(roster)]
        if semester is not None:
            conditions.append(Result.semester == semester)
        average_marks = func.avg(Result.marks_obtained).label("average_marks")

        rows = self.db.execute(
            select(
                Student.id,
                Student.roll_no,
                User.first_name,
                User.last_name,
                average_marks,
                func.avg(Result.grade_point).label("average_grade_point"),
                func.count(Result.id).label("subjects"),
                _all_passed().label("all_passed"),
            )
            .select_from(Result)
            .join(Student, Result.student_id == Student.id)
            .join(User, Student.user_id == User.id)
            .where(*conditions)
            .group_by(Student.id, Student.roll_no, User.first_name, User.last_name)
            .order_by(average_marks.desc(), Student.id.asc())
        ).all()

        students = [
            ClassStudentSummary(
                student_id=r.id,
                roll_no=r.roll_no,
                name=f"{r.first_name} {r.last_name}",
                average_marks=round2(r.average_marks),
                average_grade_point=round2(r.average_grade_point),
                total_subjects=r.subjects,
                passed=bool(r.all_passed),
            )
            for r in rows
        ]

        total = len(students)
        passed = sum(1 for s in students if s.passed)
        # Mean of the unrounded per-student means
        class_average = (
            round2(sum(Decimal(str(r.average_marks)) for r in rows) / total) if total else ZERO
        )

        return ClassReport(
            class_id=school_class.id,
            class_code=school_class.code,
            class_name=school_class.name,
            semester=semester,
            students=students,
            statistics=ClassStatistics(
                total_students=total,
                passed_students=passed,
                failed_students=total - passed,
                pass_percentage=round2(Decimal(passed) / Decimal(total) * 100) if total else ZERO,
                class_average=class_average,
            ),
        )
