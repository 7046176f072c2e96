"""Initial schema - users, profiles, subjects, classes, results, attendance, audit, notifications, config.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


userrole = sa.Enum('admin', 'teacher', 'student', name='userrole')
subjectcategory = sa.Enum('theory', 'practical', 'both', name='subjectcategory')
examtype = sa.Enum('mid', 'final', 'practical', 'assignment', name='examtype')
attendancestatus = sa.Enum('present', 'absent', 'leave', 'late', name='attendancestatus')
auditaction = sa.Enum(
    'USER_REGISTERED', 'USER_LOGIN', 'USER_LOGOUT', 'PASSWORD_CHANGED', 'PROFILE_UPDATED',
    'CREATE_MARKS', 'UPDATE_MARKS', 'UPDATE_RESULT', 'APPROVE_RESULT', 'DELETE_RESULT',
    'MARK_ATTENDANCE', 'UPDATE_ATTENDANCE', 'DELETE_ATTENDANCE',
    'DATA_CREATED', 'DATA_UPDATED', 'DATA_DEACTIVATED',
    'CONFIG_UPDATED',
    name='auditaction',
)
auditstatus = sa.Enum('success', 'failed', name='auditstatus')
notificationchannel = sa.Enum('email', 'sms', 'in-app', 'push', name='notificationchannel')
notificationpriority = sa.Enum('low', 'medium', 'high', 'urgent', name='notificationpriority')
notificationstatus = sa.Enum('pending', 'sent', 'failed', 'read', name='notificationstatus')
configcategory = sa.Enum('system', 'grading', 'exam', 'notification', 'academic', name='configcategory')


def timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('role', userrole, nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('token_version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('login_count', sa.Integer(), nullable=False, server_default='0'),
        *timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'teachers',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('employee_id', sa.String(50), nullable=False, unique=True),
        sa.Column('department', sa.String(255), nullable=False),
        sa.Column('qualification', sa.String(255), nullable=True),
        sa.Column('specialization', sa.String(255), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_teachers_department', 'teachers', ['department'])
    op.create_index('ix_teachers_created_at', 'teachers', ['created_at'])

    op.create_table(
        'subjects',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('max_marks', sa.DECIMAL(10, 2), nullable=False),
        sa.Column('pass_marks', sa.DECIMAL(10, 2), nullable=False),
        sa.Column('category', subjectcategory, nullable=False),
        sa.Column('credits', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('assigned_teacher_id', sa.BigInteger(), sa.ForeignKey('teachers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
        sa.CheckConstraint('pass_marks <= max_marks', name='ck_subject_pass_le_max'),
        sa.CheckConstraint('max_marks > 0', name='ck_subject_max_positive'),
        sa.CheckConstraint('pass_marks >= 0', name='ck_subject_pass_non_negative'),
    )
    op.create_index('ix_subjects_code', 'subjects', ['code'], unique=True)
    op.create_index('ix_subjects_assigned_teacher_id', 'subjects', ['assigned_teacher_id'])
    op.create_index('ix_subjects_created_at', 'subjects', ['created_at'])

    op.create_table(
        'teacher_subjects',
        sa.Column('teacher_id', sa.BigInteger(), sa.ForeignKey('teachers.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('subject_id', sa.BigInteger(), sa.ForeignKey('subjects.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'classes',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(50), nullable=False, unique=True),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('semester', sa.Integer(), nullable=False),
        sa.Column('class_teacher_id', sa.BigInteger(), sa.ForeignKey('teachers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('max_strength', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *timestamps(),
    )
    op.create_index('ix_classes_year', 'classes', ['year'])
    op.create_index('ix_classes_class_teacher_id', 'classes', ['class_teacher_id'])
    op.create_index('ix_classes_created_at', 'classes', ['created_at'])

    op.create_table(
        'class_subjects',
        sa.Column('class_id', sa.BigInteger(), sa.ForeignKey('classes.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('subject_id', sa.BigInteger(), sa.ForeignKey('subjects.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'students',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('roll_no', sa.String(50), nullable=False, unique=True),
        sa.Column('department', sa.String(255), nullable=False),
        sa.Column('batch', sa.String(50), nullable=False),
        sa.Column('semester', sa.Integer(), nullable=False),
        sa.Column('class_id', sa.BigInteger(), sa.ForeignKey('classes.id', ondelete='SET NULL'), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('guardian_name', sa.String(255), nullable=True),
        sa.Column('guardian_phone', sa.String(50), nullable=True),
        sa.Column('guardian_email', sa.String(255), nullable=True),
        sa.Column('guardian_relation', sa.String(50), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_students_department', 'students', ['department'])
    op.create_index('ix_students_batch', 'students', ['batch'])
    op.create_index('ix_students_class_id', 'students', ['class_id'])
    op.create_index('ix_students_created_at', 'students', ['created_at'])

    op.create_table(
        'class_enrollments',
        sa.Column('class_id', sa.BigInteger(), sa.ForeignKey('classes.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('student_id', sa.BigInteger(), sa.ForeignKey('students.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('added_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_class_enrollments_student_id', 'class_enrollments', ['student_id'])

    op.create_table(
        'results',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.BigInteger(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subject_id', sa.BigInteger(), sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('semester', sa.Integer(), nullable=False),
        sa.Column('exam_type', examtype, nullable=False),
        sa.Column('marks_obtained', sa.DECIMAL(10, 2), nullable=False),
        sa.Column('percentage', sa.DECIMAL(5, 2), nullable=False),
        sa.Column('grade', sa.String(5), nullable=False),
        sa.Column('grade_point', sa.DECIMAL(4, 2), nullable=False),
        sa.Column('is_passed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('created_by_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_approved', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('approved_by_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
        sa.UniqueConstraint(
            'student_id', 'subject_id', 'semester', 'exam_type',
            name='uq_result_student_subject_semester_exam',
        ),
    )
    op.create_index('ix_results_student_id', 'results', ['student_id'])
    op.create_index('ix_results_subject_id', 'results', ['subject_id'])
    op.create_index('ix_results_created_by_id', 'results', ['created_by_id'])
    op.create_index('ix_results_created_at', 'results', ['created_at'])

    op.create_table(
        'attendance_records',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.BigInteger(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('subject_id', sa.BigInteger(), sa.ForeignKey('subjects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('attendance_date', sa.Date(), nullable=False),
        sa.Column('status', attendancestatus, nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('created_by_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *timestamps(),
        sa.UniqueConstraint(
            'student_id', 'subject_id', 'attendance_date',
            name='uq_attendance_student_subject_date',
        ),
    )
    op.create_index('ix_attendance_records_student_id', 'attendance_records', ['student_id'])
    op.create_index('ix_attendance_records_subject_id', 'attendance_records', ['subject_id'])
    op.create_index('ix_attendance_records_attendance_date', 'attendance_records', ['attendance_date'])
    op.create_index('ix_attendance_records_created_at', 'attendance_records', ['created_at'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('actor_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action', auditaction, nullable=False),
        sa.Column('resource_type', sa.String(100), nullable=False),
        sa.Column('resource_id', sa.String(100), nullable=True),
        sa.Column('before', postgresql.JSONB(), nullable=True),
        sa.Column('after', postgresql.JSONB(), nullable=True),
        sa.Column('ip_address', sa.String(50), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('status', auditstatus, nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_audit_logs_actor_id', 'audit_logs', ['actor_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_resource_type', 'audit_logs', ['resource_type'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('channel', notificationchannel, nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('data', postgresql.JSONB(), nullable=True),
        sa.Column('priority', notificationpriority, nullable=False),
        sa.Column('status', notificationstatus, nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_status', 'notifications', ['status'])
    op.create_index('ix_notifications_read_at', 'notifications', ['read_at'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])

    op.create_table(
        'config_entries',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('value', postgresql.JSONB(), nullable=False),
        sa.Column('category', configcategory, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('updated_by_id', sa.BigInteger(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_config_entries_key', 'config_entries', ['key'], unique=True)
    op.create_index('ix_config_entries_category', 'config_entries', ['category'])
    op.create_index('ix_config_entries_created_at', 'config_entries', ['created_at'])


def downgrade() -> None:
    op.drop_table('config_entries')
    op.drop_table('notifications')
    op.drop_table('audit_logs')
    op.drop_table('attendance_records')
    op.drop_table('results')
    op.drop_table('class_enrollments')
    op.drop_table('students')
    op.drop_table('class_subjects')
    op.drop_table('classes')
    op.drop_table('teacher_subjects')
    op.drop_table('subjects')
    op.drop_table('teachers')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (
        configcategory,
        notificationstatus,
        notificationpriority,
        notificationchannel,
        auditstatus,
        auditaction,
        attendancestatus,
        examtype,
        subjectcategory,
        userrole,
    ):
        enum_type.drop(bind, checkfirst=True)
