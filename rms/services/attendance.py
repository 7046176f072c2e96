"""Attendance service for CRUD, bulk marking and summaries."""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import Integer, case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rms.core.exceptions import AppException, ConflictError, NotFoundError, ValidationError
from rms.models.attendance import AttendanceRecord, AttendanceStatus
from rms.models.student import Student
from rms.models.subject import Subject
from rms.models.user import User, UserRole
from rms.schemas.attendance import (
    AttendanceCreate,
    AttendanceFilter,
    AttendanceResponse,
    AttendanceSummary,
    AttendanceUpdate,
    BulkAttendanceRequest,
    BulkAttendanceResponse,
    SubjectAttendance,
)
from rms.schemas.common import BulkItemError
from rms.services.config import ATTENDANCE_THRESHOLD, ConfigService
from rms.services.grading import round2

logger = logging.getLogger(__name__)


def attendance_snapshot(record: AttendanceRecord) -> dict:
    return {
        "student_id": record.student_id,
        "subject_id": record.subject_id,
        "attendance_date": record.formatted_date,
        "status": record.status,
        "remarks": record.remarks,
    }


def _count(status: AttendanceStatus):
    return func.sum(case((AttendanceRecord.status == status, 1), else_=0)).cast(Integer)


class AttendanceService:
    """Attendance record management service."""

    def __init__(self, db: Session):
        self.db = db

    def _get_student(self, student_id: int) -> Student:
        student = self.db.execute(select(Student).where(Student.id == student_id)).scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", str(student_id))
        return student

    def _get_subject(self, subject_id: int) -> Subject:
        subject = self.db.execute(select(Subject).where(Subject.id == subject_id)).scalar_one_or_none()
        if not subject:
            raise NotFoundError("Subject", str(subject_id))
        return subject

    def _own_student_id(self, viewer: User) -> int | None:
        return self.db.execute(
            select(Student.id).where(Student.user_id == viewer.id)
        ).scalar_one_or_none()

    def _get_existing_record(self, student_id: int, subject_id: int, attendance_date: date) -> AttendanceRecord | None:
        return self.db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.student_id == student_id,
                AttendanceRecord.subject_id == subject_id,
                AttendanceRecord.attendance_date == attendance_date,
            )
        ).scalar_one_or_none()

    def get_record(self, record_id: int, viewer: User | None = None) -> AttendanceRecord:
        record = self.db.execute(
            select(AttendanceRecord).where(AttendanceRecord.id == record_id)
        ).scalar_one_or_none()
        if not record:
            raise NotFoundError("Attendance record", str(record_id))
        if viewer is not None and viewer.role == UserRole.STUDENT:
            if self._own_student_id(viewer) != record.student_id:
                raise NotFoundError("Attendance record", str(record_id))
        return record

    # ==========================================
    # Writes
    # ==========================================

    def mark_attendance(self, request: BulkAttendanceRequest, actor: User) -> BulkAttendanceResponse:
        """Create or update attendance for many students on one date.

        Each entry is isolated in a savepoint.
        """
        subject = self._get_subject(request.subject_id)

        created = 0
        updated = 0
        saved: list[AttendanceRecord] = []
        errors: list[BulkItemError] = []

        for entry in request.entries:
            try:
                with self.db.begin_nested():
                    self._get_student(entry.student_id)
                    record = self._get_existing_record(entry.student_id, subject.id, request.attendance_date)
                    if record is not None:
                        record.status = entry.status
                        if entry.remarks is not None:
                            record.remarks = entry.remarks
                        is_new = False
                    else:
                        record = AttendanceRecord(
                            student_id=entry.student_id,
                            subject_id=subject.id,
                            attendance_date=request.attendance_date,
                            status=entry.status,
                            remarks=entry.remarks,
                            created_by_id=actor.id,
                        )
                        self.db.add(record)
                        is_new = True
                if is_new:
                    created += 1
                else:
                    updated += 1
                saved.append(record)
            except AppException as e:
                errors.append(BulkItemError(student_id=entry.student_id, error=e.message))
            except IntegrityError:
                errors.append(BulkItemError(student_id=entry.student_id, error="Duplicate attendance record"))

        self.db.flush()
        for record in saved:
            self.db.refresh(record)

        logger.info(
            f"Attendance for subject {subject.code} on {request.attendance_date}: "
            f"{created} created, {updated} updated, {len(errors)} failed"
        )
        return BulkAttendanceResponse(
            created=created,
            updated=updated,
            failed=len(errors),
            records=[AttendanceResponse.model_validate(r) for r in saved],
            errors=errors,
        )

    def create_record(self, request: AttendanceCreate, actor: User) -> AttendanceRecord:
        """Create a single attendance record."""
        self._get_student(request.student_id)
        self._get_subject(request.subject_id)

        if self._get_existing_record(request.student_id, request.subject_id, request.attendance_date):
            raise ConflictError(
                "Attendance already recorded for this student, subject and date",
                {
                    "student_id": request.student_id,
                    "subject_id": request.subject_id,
                    "attendance_date": request.attendance_date.isoformat(),
                },
            )

        record = AttendanceRecord(
            student_id=request.student_id,
            subject_id=request.subject_id,
            attendance_date=request.attendance_date,
            status=request.status,
            remarks=request.remarks,
            created_by_id=actor.id,
        )
        try:
            with self.db.begin_nested():
                self.db.add(record)
        except IntegrityError:
            raise ConflictError("Attendance already recorded for this student, subject and date")
        self.db.refresh(record)
        return record

    def list_records(
        self,
        viewer: User,
        filters: AttendanceFilter | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[AttendanceResponse], int]:
        """List attendance records; students only see their own."""
        query = select(AttendanceRecord)

        if viewer.role == UserRole.STUDENT:
            own_id = self._own_student_id(viewer)
            if own_id is None:
                return [], 0
            query = query.where(AttendanceRecord.student_id == own_id)

        if filters:
            if filters.student_id is not None:
                query = query.where(AttendanceRecord.student_id == filters.student_id)
            if filters.subject_id is not None:
                query = query.where(AttendanceRecord.subject_id == filters.subject_id)
            if filters.status is not None:
                query = query.where(AttendanceRecord.status == filters.status)
            if filters.date_from:
                query = query.where(AttendanceRecord.attendance_date >= filters.date_from)
            if filters.date_to:
                query = query.where(AttendanceRecord.attendance_date <= filters.date_to)

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar() or 0
        query = (
            query
            .order_by(AttendanceRecord.attendance_date.desc(), AttendanceRecord.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        records = self.db.execute(query).scalars().all()
        return [AttendanceResponse.model_validate(r) for r in records], total

    def update_record(self, record_id: int, request: AttendanceUpdate) -> tuple[AttendanceRecord, dict]:
        record = self.get_record(record_id)
        before = attendance_snapshot(record)
        update_data = request.model_dump(exclude_unset=True)
        if "status" in update_data and update_data["status"] is None:
            raise ValidationError("Status cannot be empty")
        for field, value in update_data.items():
            setattr(record, field, value)
        self.db.flush()
        self.db.refresh(record)
        return record, before

    def delete_record(self, record_id: int) -> dict:
        record = self.get_record(record_id)
        before = attendance_snapshot(record)
        self.db.delete(record)
        self.db.flush()
        return before

    # ==========================================
    # Summary
    # ==========================================

    def get_summary(
        self,
        student_id: int,
        subject_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> AttendanceSummary:
        """Counts by status for one student.

        Without a subject filter the summary also carries a per-subject
        breakdown over the same date range.
        """
        self._get_student(student_id)

        conditions = [AttendanceRecord.student_id == student_id]
        if subject_id is not None:
            conditions.append(AttendanceRecord.subject_id == subject_id)
        if date_from:
            conditions.append(AttendanceRecord.attendance_date >= date_from)
        if date_to:
            conditions.append(AttendanceRecord.attendance_date <= date_to)

        row = self.db.execute(
            select(
                func.count(AttendanceRecord.id).label("total"),
                _count(AttendanceStatus.PRESENT).label("present"),
                _count(AttendanceStatus.ABSENT).label("absent"),
                _count(AttendanceStatus.LEAVE).label("leave"),
                _count(AttendanceStatus.LATE).label("late"),
            ).where(*conditions)
        ).one()

        total = row.total or 0
        present = row.present or 0
        percentage = round2(Decimal(present) / Decimal(total) * 100) if total else Decimal("0.00")

        subject_wise: list[SubjectAttendance] = []
        if subject_id is None:
            rows = self.db.execute(
                select(
                    Subject.id,
                    Subject.code,
                    Subject.name,
                    func.count(AttendanceRecord.id).label("total"),
                    _count(AttendanceStatus.PRESENT).label("present"),
                )
                .join(Subject, AttendanceRecord.subject_id == Subject.id)
                .where(*conditions)
                .group_by(Subject.id, Subject.code, Subject.name)
                .order_by(Subject.code)
            ).all()
            subject_wise = [
                SubjectAttendance(
                    subject_id=r.id,
                    subject_code=r.code,
                    subject_name=r.name,
                    total=r.total,
                    present=r.present or 0,
                    percentage=round2(Decimal(r.present or 0) / Decimal(r.total) * 100),
                )
                for r in rows
            ]

        threshold = round2(ConfigService(self.db).get_value(ATTENDANCE_THRESHOLD, 75))
        return AttendanceSummary(
            student_id=student_id,
            total=total,
            present=present,
            absent=row.absent or 0,
            leave=row.leave or 0,
            late=row.late or 0,
            percentage=percentage,
            below_threshold=bool(total) and percentage < threshold,
            threshold=threshold,
            subject_wise=subject_wise,
        )
