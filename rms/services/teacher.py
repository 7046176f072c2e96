"""Teacher management service."""

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rms.core.exceptions import ConflictError, NotFoundError
from rms.models.subject import Subject
from rms.models.teacher import Teacher
from rms.models.user import User, UserRole
from rms.schemas.teacher import TeacherCreate, TeacherFilter, TeacherResponse, TeacherUpdate
from rms.services.auth import AuthService


def teacher_snapshot(teacher: Teacher) -> dict:
    return {
        "user_id": teacher.user_id,
        "employee_id": teacher.employee_id,
        "department": teacher.department,
        "qualification": teacher.qualification,
        "specialization": teacher.specialization,
        "subject_ids": sorted(teacher.subject_ids),
    }


class TeacherService:
    """Teacher profile service."""

    def __init__(self, db: Session):
        self.db = db

    def get_teacher(self, teacher_id: int) -> Teacher:
        teacher = self.db.execute(select(Teacher).where(Teacher.id == teacher_id)).scalar_one_or_none()
        if not teacher:
            raise NotFoundError("Teacher", str(teacher_id))
        return teacher

    def get_by_user_id(self, user_id: int) -> Teacher | None:
        return self.db.execute(select(Teacher).where(Teacher.user_id == user_id)).scalar_one_or_none()

    def _load_subjects(self, subject_ids: list[int]) -> list[Subject]:
        if not subject_ids:
            return []
        subjects = self.db.execute(select(Subject).where(Subject.id.in_(subject_ids))).scalars().all()
        missing = set(subject_ids) - {s.id for s in subjects}
        if missing:
            raise NotFoundError("Subject", ", ".join(str(i) for i in sorted(missing)))
        return list(subjects)

    def create_teacher(self, request: TeacherCreate) -> Teacher:
        """Create the user account and teacher profile in one unit of work."""
        existing = self.db.execute(
            select(Teacher.id).where(Teacher.employee_id == request.employee_id)
        ).scalar_one_or_none()
        if existing:
            raise ConflictError("Employee ID already exists", {"employee_id": request.employee_id})

        subjects = self._load_subjects(request.subject_ids)
        user = AuthService(self.db).create_user(
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email,
            password=request.password,
            role=UserRole.TEACHER,
            phone=request.phone,
        )
        teacher = Teacher(
            user_id=user.id,
            employee_id=request.employee_id,
            department=request.department,
            qualification=request.qualification,
            specialization=request.specialization,
            subjects=subjects,
        )
        try:
            with self.db.begin_nested():
                self.db.add(teacher)
        except IntegrityError:
            raise ConflictError("Teacher profile already exists", {"employee_id": request.employee_id})
        self.db.refresh(teacher)
        return teacher

    def list_teachers(
        self,
        filters: TeacherFilter | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[TeacherResponse], int]:
        query = select(Teacher).join(User, Teacher.user_id == User.id)

        if filters:
            if filters.department:
                query = query.where(Teacher.department == filters.department)
            if filters.search:
                search_term = f"%{filters.search}%"
                query = query.where(
                    or_(
                        User.first_name.ilike(search_term),
                        User.last_name.ilike(search_term),
                        User.email.ilike(search_term),
                        Teacher.employee_id.ilike(search_term),
                    )
                )

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar() or 0
        query = query.order_by(Teacher.employee_id).offset((page - 1) * page_size).limit(page_size)
        teachers = self.db.execute(query).scalars().all()
        return [TeacherResponse.model_validate(t) for t in teachers], total

    def update_teacher(self, teacher_id: int, request: TeacherUpdate) -> tuple[Teacher, dict]:
        teacher = self.get_teacher(teacher_id)
        before = teacher_snapshot(teacher)
        update_data = request.model_dump(exclude_unset=True)

        if "subject_ids" in update_data:
            teacher.subjects = self._load_subjects(update_data.pop("subject_ids") or [])
        for field, value in update_data.items():
            setattr(teacher, field, value)

        self.db.flush()
        self.db.refresh(teacher)
        return teacher, before

    def deactivate_teacher(self, teacher_id: int) -> Teacher:
        """Deactivate the teacher's account and revoke their sessions."""
        teacher = self.get_teacher(teacher_id)
        teacher.user.is_active = False
        teacher.user.revoke_sessions()
        self.db.flush()
        return teacher
