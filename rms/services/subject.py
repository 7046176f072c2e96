"""Subject management service."""

import logging
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rms.core.exceptions import ConflictError, NotFoundError, ValidationError
from rms.models.result import Result
from rms.models.subject import Subject
from rms.models.teacher import Teacher
from rms.schemas.subject import SubjectCreate, SubjectResponse, SubjectUpdate
from rms.services.config import ConfigService
from rms.services.grading import compute_grade

logger = logging.getLogger(__name__)


def subject_snapshot(subject: Subject) -> dict:
    return {
        "code": subject.code,
        "name": subject.name,
        "max_marks": subject.max_marks,
        "pass_marks": subject.pass_marks,
        "category": subject.category,
        "credits": subject.credits,
        "assigned_teacher_id": subject.assigned_teacher_id,
        "is_active": subject.is_active,
    }


class SubjectService:
    """Subject CRUD; scheme changes re-derive the subject's results."""

    def __init__(self, db: Session):
        self.db = db

    def get_subject(self, subject_id: int) -> Subject:
        subject = self.db.execute(select(Subject).where(Subject.id == subject_id)).scalar_one_or_none()
        if not subject:
            raise NotFoundError("Subject", str(subject_id))
        return subject

    def _check_teacher(self, teacher_id: int | None) -> None:
        if teacher_id is None:
            return
        exists = self.db.execute(select(Teacher.id).where(Teacher.id == teacher_id)).scalar_one_or_none()
        if not exists:
            raise NotFoundError("Teacher", str(teacher_id))

    def create_subject(self, request: SubjectCreate) -> Subject:
        code = request.code.upper()
        existing = self.db.execute(select(Subject.id).where(Subject.code == code)).scalar_one_or_none()
        if existing:
            raise ConflictError("Subject code already exists", {"code": code})
        self._check_teacher(request.assigned_teacher_id)

        subject = Subject(**request.model_dump(exclude={"code"}), code=code)
        try:
            with self.db.begin_nested():
                self.db.add(subject)
        except IntegrityError:
            raise ConflictError("Subject code already exists", {"code": code})
        self.db.refresh(subject)
        return subject

    def list_subjects(
        self,
        search: str | None = None,
        is_active: bool | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[SubjectResponse], int]:
        query = select(Subject)
        if is_active is not None:
            query = query.where(Subject.is_active == is_active)
        if search:
            search_term = f"%{search}%"
            query = query.where(or_(Subject.code.ilike(search_term), Subject.name.ilike(search_term)))

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar() or 0
        query = query.order_by(Subject.code).offset((page - 1) * page_size).limit(page_size)
        subjects = self.db.execute(query).scalars().all()
        return [SubjectResponse.model_validate(s) for s in subjects], total

    def update_subject(self, subject_id: int, request: SubjectUpdate) -> tuple[Subject, dict, int]:
        """Update a subject.

        Returns the subject, its previous snapshot and how many results were
        re-derived because ``max_marks`` or ``pass_marks`` changed.
        """
        subject = self.get_subject(subject_id)
        before = subject_snapshot(subject)
        update_data = request.model_dump(exclude_unset=True)

        max_marks = update_data.get("max_marks") or subject.max_marks
        pass_marks = update_data.get("pass_marks", subject.pass_marks)
        if pass_marks is None:
            pass_marks = subject.pass_marks
        if pass_marks > max_marks:
            raise ValidationError(
                "pass_marks cannot exceed max_marks",
                {"max_marks": float(max_marks), "pass_marks": float(pass_marks)},
            )
        if "assigned_teacher_id" in update_data:
            self._check_teacher(update_data["assigned_teacher_id"])

        scheme_changed = (
            Decimal(max_marks) != subject.max_marks or Decimal(pass_marks) != subject.pass_marks
        )
        for field, value in update_data.items():
            if field in ("max_marks", "pass_marks") and value is None:
                continue
            setattr(subject, field, value)
        self.db.flush()

        recomputed = self.recompute_results(subject) if scheme_changed else 0
        self.db.refresh(subject)
        return subject, before, recomputed

    def recompute_results(self, subject: Subject) -> int:
        """Re-derive every result of the subject under its current scheme."""
        results = self.db.execute(select(Result).where(Result.subject_id == subject.id)).scalars().all()
        if not results:
            return 0

        over_max = [r.id for r in results if r.marks_obtained > subject.max_marks]
        if over_max:
            raise ValidationError(
                "Existing results exceed the new max_marks",
                {"result_ids": over_max},
            )

        bands = ConfigService(self.db).get_grade_bands()
        for result in results:
            outcome = compute_grade(result.marks_obtained, subject.max_marks, subject.pass_marks, bands)
            result.percentage = outcome.percentage
            result.grade = outcome.grade
            result.grade_point = outcome.grade_point
            result.is_passed = outcome.is_passed
        self.db.flush()
        logger.info(f"Recomputed {len(results)} results for subject {subject.code}")
        return len(results)

    def deactivate_subject(self, subject_id: int) -> Subject:
        subject = self.get_subject(subject_id)
        subject.is_active = False
        self.db.flush()
        return subject
