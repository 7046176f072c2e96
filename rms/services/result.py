"""Result (marks) service."""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rms.core.exceptions import (
    AppException,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from rms.models.notification import NotificationPriority
from rms.models.result import ExamType, Result
from rms.models.student import Student
from rms.models.subject import Subject
from rms.models.user import User, UserRole
from rms.schemas.common import BulkItemError
from rms.schemas.result import (
    BulkMarksRequest,
    BulkMarksResponse,
    ResultCreate,
    ResultFilter,
    ResultResponse,
    ResultUpdate,
)
from rms.services.config import ConfigService
from rms.services.grading import GradeBand, compute_grade
from rms.services.notification import NotificationService
from rms.services.student import StudentService
from rms.services.teacher import TeacherService

logger = logging.getLogger(__name__)


def result_snapshot(result: Result) -> dict:
    return {
        "student_id": result.student_id,
        "subject_id": result.subject_id,
        "semester": result.semester,
        "exam_type": result.exam_type,
        "marks_obtained": result.marks_obtained,
        "percentage": result.percentage,
        "grade": result.grade,
        "grade_point": result.grade_point,
        "is_passed": result.is_passed,
        "remarks": result.remarks,
        "is_approved": result.is_approved,
    }


class ResultService:
    """Marks entry, approval and visibility rules.

    Derived fields are always written through :meth:`_apply_marks`.
    """

    def __init__(self, db: Session):
        self.db = db

    # ==========================================
    # Lookups and access checks
    # ==========================================

    def _get_subject(self, subject_id: int) -> Subject:
        subject = self.db.execute(select(Subject).where(Subject.id == subject_id)).scalar_one_or_none()
        if not subject:
            raise NotFoundError("Subject", str(subject_id))
        if not subject.is_active:
            raise ValidationError("Subject is inactive", {"subject_id": subject_id})
        return subject

    def _get_student(self, student_id: int) -> Student:
        student = self.db.execute(select(Student).where(Student.id == student_id)).scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", str(student_id))
        return student

    def get_result(self, result_id: int, viewer: User | None = None) -> Result:
        result = self.db.execute(select(Result).where(Result.id == result_id)).scalar_one_or_none()
        if not result:
            raise NotFoundError("Result", str(result_id))
        if viewer is not None:
            self._check_can_view(result, viewer)
        return result

    def _assigned_subject_ids(self, user: User) -> set[int]:
        teacher = TeacherService(self.db).get_by_user_id(user.id)
        if not teacher:
            return set()
        assigned = set(teacher.subject_ids)
        assigned.update(
            self.db.execute(
                select(Subject.id).where(Subject.assigned_teacher_id == teacher.id)
            ).scalars().all()
        )
        return assigned

    def _check_can_enter(self, subject: Subject, actor: User) -> None:
        if actor.role == UserRole.ADMIN:
            return
        if actor.role == UserRole.TEACHER and subject.id in self._assigned_subject_ids(actor):
            return
        raise AuthorizationError(
            "You are not assigned to this subject",
            required_permission="enter:marks",
        )

    def _check_can_view(self, result: Result, viewer: User) -> None:
        if viewer.role == UserRole.ADMIN:
            return
        if viewer.role == UserRole.TEACHER and result.subject_id in self._assigned_subject_ids(viewer):
            return
        if viewer.role == UserRole.STUDENT:
            student = StudentService(self.db).get_by_user_id(viewer.id)
            if student and student.id == result.student_id:
                return
        # Hide existence from viewers without access
        raise NotFoundError("Result", str(result.id))

    def _apply_marks(
        self,
        result: Result,
        subject: Subject,
        marks_obtained: Decimal,
        bands: tuple[GradeBand, ...],
    ) -> None:
        if marks_obtained > subject.max_marks:
            raise ValidationError(
                f"Marks obtained ({marks_obtained}) exceed max marks ({subject.max_marks})",
                {"max_marks": float(subject.max_marks)},
            )
        outcome = compute_grade(marks_obtained, subject.max_marks, subject.pass_marks, bands)
        result.marks_obtained = marks_obtained
        result.percentage = outcome.percentage
        result.grade = outcome.grade
        result.grade_point = outcome.grade_point
        result.is_passed = outcome.is_passed

    def _find_existing(self, student_id: int, subject_id: int, semester: int, exam_type: ExamType) -> Result | None:
        return self.db.execute(
            select(Result).where(
                Result.student_id == student_id,
                Result.subject_id == subject_id,
                Result.semester == semester,
                Result.exam_type == exam_type,
            )
        ).scalar_one_or_none()

    # ==========================================
    # Writes
    # ==========================================

    def enter_marks(self, request: BulkMarksRequest, actor: User) -> BulkMarksResponse:
        """Create or update marks for many students.

        Each entry runs in its own savepoint: a failing entry is reported in
        ``errors`` and never affects the others.
        """
        subject = self._get_subject(request.subject_id)
        self._check_can_enter(subject, actor)
        bands = ConfigService(self.db).get_grade_bands()

        created = 0
        updated = 0
        saved: list[Result] = []
        errors: list[BulkItemError] = []

        for entry in request.entries:
            try:
                with self.db.begin_nested():
                    self._get_student(entry.student_id)
                    result = self._find_existing(
                        entry.student_id, subject.id, request.semester, request.exam_type
                    )
                    if result is not None:
                        if result.is_approved:
                            raise ValidationError("Result is already approved")
                        self._apply_marks(result, subject, entry.marks_obtained, bands)
                        if entry.remarks is not None:
                            result.remarks = entry.remarks
                        is_new = False
                    else:
                        result = Result(
                            student_id=entry.student_id,
                            subject_id=subject.id,
                            semester=request.semester,
                            exam_type=request.exam_type,
                            remarks=entry.remarks,
                            created_by_id=actor.id,
                        )
                        self._apply_marks(result, subject, entry.marks_obtained, bands)
                        self.db.add(result)
                        is_new = True
                if is_new:
                    created += 1
                else:
                    updated += 1
                saved.append(result)
            except AppException as e:
                errors.append(BulkItemError(student_id=entry.student_id, error=e.message))
            except IntegrityError:
                errors.append(BulkItemError(student_id=entry.student_id, error="Duplicate result"))

        self.db.flush()
        for result in saved:
            self.db.refresh(result)

        logger.info(
            f"Marks entry for subject {subject.code}: {created} created, "
            f"{updated} updated, {len(errors)} failed"
        )
        return BulkMarksResponse(
            created=created,
            updated=updated,
            failed=len(errors),
            results=[ResultResponse.model_validate(r) for r in saved],
            errors=errors,
        )

    def create_result(self, request: ResultCreate, actor: User) -> Result:
        subject = self._get_subject(request.subject_id)
        self._check_can_enter(subject, actor)
        self._get_student(request.student_id)

        if self._find_existing(request.student_id, subject.id, request.semester, request.exam_type):
            raise ConflictError(
                "Result already exists for this student, subject, semester and exam type",
                {
                    "student_id": request.student_id,
                    "subject_id": subject.id,
                    "semester": request.semester,
                    "exam_type": request.exam_type.value,
                },
            )

        result = Result(
            student_id=request.student_id,
            subject_id=subject.id,
            semester=request.semester,
            exam_type=request.exam_type,
            remarks=request.remarks,
            created_by_id=actor.id,
        )
        self._apply_marks(result, subject, request.marks_obtained, ConfigService(self.db).get_grade_bands())
        try:
            with self.db.begin_nested():
                self.db.add(result)
        except IntegrityError:
            raise ConflictError("Result already exists for this student, subject, semester and exam type")
        self.db.refresh(result)
        return result

    def list_results(
        self,
        viewer: User,
        filters: ResultFilter | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[ResultResponse], int]:
        """List results visible to the viewer.

        Students only see their own results and teachers only those of
        their assigned subjects.
        """
        query = select(Result)

        if viewer.role == UserRole.STUDENT:
            student = StudentService(self.db).get_by_user_id(viewer.id)
            if not student:
                return [], 0
            query = query.where(Result.student_id == student.id)
        elif viewer.role == UserRole.TEACHER:
            query = query.where(Result.subject_id.in_(self._assigned_subject_ids(viewer)))

        if filters:
            if filters.student_id is not None:
                query = query.where(Result.student_id == filters.student_id)
            if filters.subject_id is not None:
                query = query.where(Result.subject_id == filters.subject_id)
            if filters.semester is not None:
                query = query.where(Result.semester == filters.semester)
            if filters.exam_type is not None:
                query = query.where(Result.exam_type == filters.exam_type)
            if filters.is_approved is not None:
                query = query.where(Result.is_approved == filters.is_approved)
            if filters.is_passed is not None:
                query = query.where(Result.is_passed == filters.is_passed)

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar() or 0
        query = (
            query
            .order_by(Result.semester.desc(), Result.created_at.desc(), Result.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        results = self.db.execute(query).scalars().all()
        return [ResultResponse.model_validate(r) for r in results], total

    def update_result(self, result_id: int, request: ResultUpdate, actor: User) -> tuple[Result, dict, dict]:
        """Change marks and/or remarks; returns the result with before/after snapshots."""
        result = self.get_result(result_id)
        self._check_can_enter(result.subject, actor)
        if result.is_approved:
            raise ValidationError("Approved results cannot be modified", {"result_id": result_id})

        before = result_snapshot(result)
        if request.marks_obtained is not None:
            self._apply_marks(
                result,
                result.subject,
                request.marks_obtained,
                ConfigService(self.db).get_grade_bands(),
            )
        if "remarks" in request.model_fields_set:
            result.remarks = request.remarks

        self.db.flush()
        self.db.refresh(result)
        return result, before, result_snapshot(result)

    def approve_result(self, result_id: int, actor: User) -> tuple[Result, dict]:
        """Approve a result and notify the student."""
        result = self.get_result(result_id)
        if result.is_approved:
            raise ValidationError("Result is already approved", {"result_id": result_id})

        before = result_snapshot(result)
        result.is_approved = True
        result.approved_by_id = actor.id
        result.approved_at = datetime.now(timezone.utc)
        self.db.flush()

        NotificationService(self.db).create_notification(
            user_id=result.student.user_id,
            title="Result published",
            body=(
                f"Your {result.exam_type.value} result for {result.subject.name} "
                f"(semester {result.semester}) has been published: grade {result.grade}."
            ),
            data={"result_id": result.id, "subject_id": result.subject_id},
            priority=NotificationPriority.HIGH,
        )
        self.db.refresh(result)
        return result, before

    def delete_result(self, result_id: int) -> dict:
        """Delete a result; returns its last snapshot."""
        result = self.get_result(result_id)
        before = result_snapshot(result)
        self.db.delete(result)
        self.db.flush()
        return before
