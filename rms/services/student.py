"""Student management service."""

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rms.core.exceptions import ConflictError, NotFoundError
from rms.models.result import Result
from rms.models.student import Student
from rms.models.user import User, UserRole
from rms.schemas.student import StudentCreate, StudentFilter, StudentResponse, StudentUpdate
from rms.services.auth import AuthService
from rms.services.classroom import ClassService


def student_snapshot(student: Student) -> dict:
    return {
        "user_id": student.user_id,
        "roll_no": student.roll_no,
        "department": student.department,
        "batch": student.batch,
        "semester": student.semester,
        "class_id": student.class_id,
    }


class StudentService:
    """Student profile service."""

    def __init__(self, db: Session):
        self.db = db

    def get_student(self, student_id: int) -> Student:
        """Get student by ID."""
        student = self.db.execute(select(Student).where(Student.id == student_id)).scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", str(student_id))
        return student

    def get_by_user_id(self, user_id: int) -> Student | None:
        return self.db.execute(select(Student).where(Student.user_id == user_id)).scalar_one_or_none()

    def create_student(self, request: StudentCreate) -> Student:
        """Create the user account, the profile and the roster entry together."""
        roll_no = request.roll_no.upper()
        existing = self.db.execute(select(Student.id).where(Student.roll_no == roll_no)).scalar_one_or_none()
        if existing:
            raise ConflictError("Roll number already exists", {"roll_no": roll_no})

        classes = ClassService(self.db)
        school_class = classes.get_class(request.class_id) if request.class_id else None

        user = AuthService(self.db).create_user(
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email,
            password=request.password,
            role=UserRole.STUDENT,
            phone=request.phone,
        )
        profile = request.model_dump(
            exclude={"first_name", "last_name", "email", "password", "phone", "roll_no", "class_id"}
        )
        student = Student(user_id=user.id, roll_no=roll_no, **profile)
        try:
            with self.db.begin_nested():
                self.db.add(student)
        except IntegrityError:
            raise ConflictError("Student profile already exists", {"roll_no": roll_no})

        if school_class:
            classes.enroll(student, school_class)
        self.db.refresh(student)
        return student

    def list_students(
        self,
        filters: StudentFilter | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[StudentResponse], int]:
        """List students with filtering and pagination."""
        query = select(Student).join(User, Student.user_id == User.id)

        if filters:
            if filters.department:
                query = query.where(Student.department == filters.department)
            if filters.batch:
                query = query.where(Student.batch == filters.batch)
            if filters.semester is not None:
                query = query.where(Student.semester == filters.semester)
            if filters.class_id is not None:
                query = query.where(Student.class_id == filters.class_id)
            if filters.search:
                search_term = f"%{filters.search}%"
                query = query.where(
                    or_(
                        User.first_name.ilike(search_term),
                        User.last_name.ilike(search_term),
                        User.email.ilike(search_term),
                        Student.roll_no.ilike(search_term),
                    )
                )

        # Get total count
        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar() or 0

        # Apply pagination
        query = query.order_by(Student.roll_no).offset((page - 1) * page_size).limit(page_size)
        students = self.db.execute(query).scalars().all()
        return [StudentResponse.model_validate(s) for s in students], total

    def get_recent_results(self, student_id: int, limit: int = 10) -> list[Result]:
        return list(
            self.db.execute(
                select(Result)
                .where(Result.student_id == student_id)
                .order_by(Result.created_at.desc(), Result.id.desc())
                .limit(limit)
            ).scalars().all()
        )

    def update_student(self, student_id: int, request: StudentUpdate) -> tuple[Student, dict]:
        """Update a student; a class change moves them between rosters."""
        student = self.get_student(student_id)
        before = student_snapshot(student)
        update_data = request.model_dump(exclude_unset=True)

        if "class_id" in update_data:
            class_id = update_data.pop("class_id")
            classes = ClassService(self.db)
            if class_id is None:
                classes.unenroll(student)
            elif class_id != student.class_id:
                classes.enroll(student, classes.get_class(class_id))

        for field, value in update_data.items():
            setattr(student, field, value)

        self.db.flush()
        self.db.refresh(student)
        return student, before

    def deactivate_student(self, student_id: int) -> Student:
        """Deactivate the account, revoke sessions and leave the class."""
        student = self.get_student(student_id)
        ClassService(self.db).unenroll(student)
        student.user.is_active = False
        student.user.revoke_sessions()
        self.db.flush()
        return student
