"""Class (roster) management service."""

from datetime import datetime, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rms.core.exceptions import ConflictError, NotFoundError, ValidationError
from rms.models.classroom import ClassEnrollment, SchoolClass
from rms.models.student import Student
from rms.models.subject import Subject
from rms.models.teacher import Teacher
from rms.schemas.classroom import ClassCreate, ClassResponse, ClassUpdate


def class_snapshot(school_class: SchoolClass) -> dict:
    return {
        "name": school_class.name,
        "code": school_class.code,
        "year": school_class.year,
        "semester": school_class.semester,
        "class_teacher_id": school_class.class_teacher_id,
        "max_strength": school_class.max_strength,
        "is_active": school_class.is_active,
        "student_ids": school_class.student_ids,
        "subject_ids": [s.id for s in school_class.subjects],
    }


class ClassService:
    """Classes and their ordered rosters.

    A student is on at most one roster; ``Student.class_id`` mirrors it.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_class(self, class_id: int) -> SchoolClass:
        school_class = self.db.execute(
            select(SchoolClass).where(SchoolClass.id == class_id)
        ).scalar_one_or_none()
        if not school_class:
            raise NotFoundError("Class", str(class_id))
        return school_class

    def _load_subjects(self, subject_ids: list[int]) -> list[Subject]:
        if not subject_ids:
            return []
        subjects = self.db.execute(select(Subject).where(Subject.id.in_(subject_ids))).scalars().all()
        missing = set(subject_ids) - {s.id for s in subjects}
        if missing:
            raise NotFoundError("Subject", ", ".join(str(i) for i in sorted(missing)))
        return list(subjects)

    def _check_teacher(self, teacher_id: int | None) -> None:
        if teacher_id is None:
            return
        exists = self.db.execute(select(Teacher.id).where(Teacher.id == teacher_id)).scalar_one_or_none()
        if not exists:
            raise NotFoundError("Teacher", str(teacher_id))

    def create_class(self, request: ClassCreate) -> SchoolClass:
        code = request.code.upper()
        existing = self.db.execute(select(SchoolClass.id).where(SchoolClass.code == code)).scalar_one_or_none()
        if existing:
            raise ConflictError("Class code already exists", {"code": code})
        self._check_teacher(request.class_teacher_id)

        school_class = SchoolClass(
            name=request.name,
            code=code,
            year=request.year or datetime.now(timezone.utc).year,
            semester=request.semester,
            class_teacher_id=request.class_teacher_id,
            max_strength=request.max_strength,
            subjects=self._load_subjects(request.subject_ids),
        )
        try:
            with self.db.begin_nested():
                self.db.add(school_class)
        except IntegrityError:
            raise ConflictError("Class code already exists", {"code": code})
        self.db.refresh(school_class)
        return school_class

    def list_classes(
        self,
        search: str | None = None,
        year: int | None = None,
        semester: int | None = None,
        is_active: bool | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[ClassResponse], int]:
        query = select(SchoolClass)
        if year is not None:
            query = query.where(SchoolClass.year == year)
        if semester is not None:
            query = query.where(SchoolClass.semester == semester)
        if is_active is not None:
            query = query.where(SchoolClass.is_active == is_active)
        if search:
            search_term = f"%{search}%"
            query = query.where(or_(SchoolClass.name.ilike(search_term), SchoolClass.code.ilike(search_term)))

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar() or 0
        query = (
            query
            .order_by(SchoolClass.year.desc(), SchoolClass.code)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        classes = self.db.execute(query).scalars().all()
        return [ClassResponse.model_validate(c) for c in classes], total

    def update_class(self, class_id: int, request: ClassUpdate) -> tuple[SchoolClass, dict]:
        school_class = self.get_class(class_id)
        before = class_snapshot(school_class)
        update_data = request.model_dump(exclude_unset=True)

        if "subject_ids" in update_data:
            school_class.subjects = self._load_subjects(update_data.pop("subject_ids") or [])
        if "class_teacher_id" in update_data:
            self._check_teacher(update_data["class_teacher_id"])
        if update_data.get("max_strength") is not None and update_data["max_strength"] < school_class.current_strength:
            raise ValidationError(
                "max_strength cannot be below the current roster size",
                {"current_strength": school_class.current_strength},
            )
        for field, value in update_data.items():
            setattr(school_class, field, value)

        self.db.flush()
        self.db.refresh(school_class)
        return school_class, before

    def enroll(self, student: Student, school_class: SchoolClass) -> bool:
        """Put a student on a roster, moving them off any previous one.

        Returns ``False`` when the student was already on this roster.
        """
        if student.id in school_class.student_ids:
            return False
        if not school_class.is_active:
            raise ValidationError("Cannot add students to an inactive class", {"class_id": school_class.id})
        if school_class.current_strength >= school_class.max_strength:
            raise ValidationError(
                "Class is at maximum strength",
                {"class_id": school_class.id, "max_strength": school_class.max_strength},
            )

        self.unenroll(student)
        next_position = max((e.position for e in school_class.enrollments), default=0) + 1
        school_class.enrollments.append(
            ClassEnrollment(student_id=student.id, position=next_position)
        )
        student.class_id = school_class.id
        self.db.flush()
        return True

    def unenroll(self, student: Student) -> None:
        """Remove a student from whatever roster they are on."""
        class_ids = self.db.execute(
            select(ClassEnrollment.class_id).where(ClassEnrollment.student_id == student.id)
        ).scalars().all()
        for class_id in class_ids:
            previous = self.get_class(class_id)
            previous.enrollments[:] = [e for e in previous.enrollments if e.student_id != student.id]
        student.class_id = None
        self.db.flush()

    def _get_students(self, student_ids: list[int]) -> list[Student]:
        students = self.db.execute(select(Student).where(Student.id.in_(student_ids))).scalars().all()
        by_id = {s.id: s for s in students}
        missing = [i for i in student_ids if i not in by_id]
        if missing:
            raise NotFoundError("Student", ", ".join(str(i) for i in missing))
        # Keep the caller's order so roster positions follow the request
        return [by_id[i] for i in dict.fromkeys(student_ids)]

    def add_students(self, class_id: int, student_ids: list[int]) -> tuple[SchoolClass, int]:
        school_class = self.get_class(class_id)
        students = self._get_students(student_ids)
        new_students = [s for s in students if s.id not in school_class.student_ids]
        if school_class.current_strength + len(new_students) > school_class.max_strength:
            raise ValidationError(
                "Adding these students would exceed the class maximum strength",
                {"max_strength": school_class.max_strength, "current_strength": school_class.current_strength},
            )
        added = sum(1 for s in new_students if self.enroll(s, school_class))
        self.db.refresh(school_class)
        return school_class, added

    def remove_students(self, class_id: int, student_ids: list[int]) -> tuple[SchoolClass, int]:
        school_class = self.get_class(class_id)
        on_roster = set(school_class.student_ids)
        removed = 0
        for student in self._get_students(student_ids):
            if student.id in on_roster:
                self.unenroll(student)
                removed += 1
        self.db.refresh(school_class)
        return school_class, removed

    def deactivate_class(self, class_id: int) -> SchoolClass:
        """Deactivate a class and release its students."""
        school_class = self.get_class(class_id)
        for enrollment in list(school_class.enrollments):
            enrollment.student.class_id = None
        school_class.enrollments.clear()
        school_class.is_active = False
        self.db.flush()
        return school_class
