"""Analytics over results: rankings, distributions and trends."""

from datetime import date, datetime, time, timezone
from decimal import Decimal

from sqlalchemy import case, extract, func, select
from sqlalchemy.orm import Session

from rms.core.exceptions import NotFoundError
from rms.models.classroom import ClassEnrollment, SchoolClass
from rms.models.result import Result
from rms.models.student import Student
from rms.models.subject import Subject
from rms.models.teacher import Teacher
from rms.models.user import User
from rms.schemas.report import (
    DistributionStats,
    GradeBucket,
    OverviewStats,
    SubjectDistribution,
    TopPerformer,
    TrendPoint,
)
from rms.services.grading import round2

ZERO = Decimal("0.00")


def _pass_rate():
    return func.avg(case((Result.is_passed.is_(True), 100), else_=0))


def _passed_count():
    return func.sum(case((Result.is_passed.is_(True), 1), else_=0))


class AnalyticsService:
    """Read-only aggregates computed on demand."""

    def __init__(self, db: Session):
        self.db = db

    def top_performers(self, class_id: int, semester: int | None = None, limit: int = 10) -> list[TopPerformer]:
        """Rank a class roster by mean marks; ties go to the lower student id."""
        exists = self.db.execute(select(SchoolClass.id).where(SchoolClass.id == class_id)).scalar_one_or_none()
        if not exists:
            raise NotFoundError("Class", str(class_id))

        roster = select(ClassEnrollment.student_id).where(ClassEnrollment.class_id == class_id)
        average_marks = func.avg(Result.marks_obtained).label("average_marks")
        query = (
            select(
                Student.id,
                Student.roll_no,
                User.first_name,
                User.last_name,
                average_marks,
                func.avg(Result.grade_point).label("average_grade_point"),
                func.count(Result.id).label("subjects"),
            )
            .select_from(Result)
            .join(Student, Result.student_id == Student.id)
            .join(User, Student.user_id == User.id)
            .where(Result.student_id.in_(roster))
        )
        if semester is not None:
            query = query.where(Result.semester == semester)
        query = (
            query
            .group_by(Student.id, Student.roll_no, User.first_name, User.last_name)
            .order_by(average_marks.desc(), Student.id.asc())
            .limit(limit)
        )

        return [
            TopPerformer(
                student_id=r.id,
                roll_no=r.roll_no,
                name=f"{r.first_name} {r.last_name}",
                average_marks=round2(r.average_marks),
                average_grade_point=round2(r.average_grade_point),
                total_subjects=r.subjects,
            )
            for r in self.db.execute(query).all()
        ]

    def subject_distribution(self, subject_id: int, semester: int | None = None) -> SubjectDistribution:
        """Grade histogram for a subject plus an overall block."""
        subject = self.db.execute(select(Subject).where(Subject.id == subject_id)).scalar_one_or_none()
        if not subject:
            raise NotFoundError("Subject", str(subject_id))

        conditions = [Result.subject_id == subject_id]
        if semester is not None:
            conditions.append(Result.semester == semester)

        buckets = self.db.execute(
            select(
                Result.grade,
                func.count(Result.id).label("count"),
                func.avg(Result.marks_obtained).label("average_marks"),
            )
            .where(*conditions)
            .group_by(Result.grade)
            .order_by(Result.grade)
        ).all()

        stats = self.db.execute(
            select(
                func.count(Result.id).label("count"),
                func.avg(Result.marks_obtained).label("average_marks"),
                func.max(Result.marks_obtained).label("highest"),
                func.min(Result.marks_obtained).label("lowest"),
                _passed_count().label("passed"),
            ).where(*conditions)
        ).one()

        count = stats.count or 0
        passed = stats.passed or 0
        return SubjectDistribution(
            subject_id=subject.id,
            subject_code=subject.code,
            subject_name=subject.name,
            semester=semester,
            distribution=[
                GradeBucket(grade=b.grade, count=b.count, average_marks=round2(b.average_marks))
                for b in buckets
            ],
            stats=DistributionStats(
                total_results=count,
                average_marks=round2(stats.average_marks) if count else ZERO,
                highest_marks=round2(stats.highest) if count else ZERO,
                lowest_marks=round2(stats.lowest) if count else ZERO,
                passed_count=passed,
                failed_count=count - passed,
                pass_rate=round2(Decimal(passed) / Decimal(count) * 100) if count else ZERO,
            ),
        )

    def performance_trends(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
        class_id: int | None = None,
        subject_id: int | None = None,
    ) -> list[TrendPoint]:
        """Results grouped by (year, month, semester) of their creation time."""
        year = extract("year", Result.created_at).label("year")
        month = extract("month", Result.created_at).label("month")

        query = select(
            year,
            month,
            Result.semester,
            func.avg(Result.marks_obtained).label("average_marks"),
            func.avg(Result.grade_point).label("average_grade_point"),
            func.count(Result.id).label("count"),
            _pass_rate().label("pass_rate"),
        )
        if date_from:
            query = query.where(Result.created_at >= datetime.combine(date_from, time.min, tzinfo=timezone.utc))
        if date_to:
            query = query.where(Result.created_at <= datetime.combine(date_to, time.max, tzinfo=timezone.utc))
        if class_id is not None:
            roster = select(ClassEnrollment.student_id).where(ClassEnrollment.class_id == class_id)
            query = query.where(Result.student_id.in_(roster))
        if subject_id is not None:
            query = query.where(Result.subject_id == subject_id)

        query = query.group_by(year, month, Result.semester).order_by(year, month, Result.semester)

        points = []
        for r in self.db.execute(query).all():
            y, m = int(r.year), int(r.month)
            points.append(
                TrendPoint(
                    period=f"{y}-{m} (Sem {r.semester})",
                    year=y,
                    month=m,
                    semester=r.semester,
                    average_marks=round2(r.average_marks),
                    average_grade_point=round2(r.average_grade_point),
                    total_results=r.count,
                    pass_rate=round2(r.pass_rate),
                )
            )
        return points

    def overview(self) -> OverviewStats:
        def count(model) -> int:
            return self.db.execute(select(func.count()).select_from(model)).scalar() or 0

        results = self.db.execute(
            select(
                func.count(Result.id).label("count"),
                func.sum(case((Result.is_approved.is_(False), 1), else_=0)).label("pending"),
                _pass_rate().label("pass_rate"),
                func.avg(Result.percentage).label("average_percentage"),
            )
        ).one()

        has_results = bool(results.count)
        return OverviewStats(
            total_students=count(Student),
            total_teachers=count(Teacher),
            total_subjects=self.db.execute(
                select(func.count()).select_from(Subject).where(Subject.is_active.is_(True))
            ).scalar() or 0,
            total_classes=self.db.execute(
                select(func.count()).select_from(SchoolClass).where(SchoolClass.is_active.is_(True))
            ).scalar() or 0,
            total_results=results.count or 0,
            pending_approvals=results.pending or 0,
            overall_pass_rate=round2(results.pass_rate) if has_results else ZERO,
            average_percentage=round2(results.average_percentage) if has_results else ZERO,
        )
