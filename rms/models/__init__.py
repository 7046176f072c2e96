"""Database models package."""

from rms.models.attendance import AttendanceRecord, AttendanceStatus
from rms.models.audit import AuditAction, AuditLog, AuditStatus
from rms.models.classroom import ClassEnrollment, SchoolClass, class_subjects
from rms.models.config import ConfigCategory, ConfigEntry
from rms.models.notification import (
    Notification,
    NotificationChannel,
    NotificationPriority,
    NotificationStatus,
)
from rms.models.result import ExamType, Result
from rms.models.student import Student
from rms.models.subject import Subject, SubjectCategory
from rms.models.teacher import Teacher, teacher_subjects
from rms.models.user import User, UserRole

__all__ = [
    # User
    "User",
    "UserRole",
    # Profiles
    "Student",
    "Teacher",
    "teacher_subjects",
    # Academics
    "Subject",
    "SubjectCategory",
    "SchoolClass",
    "ClassEnrollment",
    "class_subjects",
    # Results
    "Result",
    "ExamType",
    # Attendance
    "AttendanceRecord",
    "AttendanceStatus",
    # Audit
    "AuditLog",
    "AuditAction",
    "AuditStatus",
    # Notification
    "Notification",
    "NotificationChannel",
    "NotificationPriority",
    "NotificationStatus",
    # Config
    "ConfigEntry",
    "ConfigCategory",
]
