"""Initial schema with all tables

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID = postgresql.UUID(as_uuid=True)


def _id() -> sa.Column:
    return sa.Column('id', UUID, nullable=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    # === TEACHERS ===
    op.create_table(
        'teachers',
        _id(),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('specialization', sa.String(length=200), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_teachers_email', 'teachers', ['email'])

    # === STUDENTS ===
    op.create_table(
        'students',
        _id(),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_students_email', 'students', ['email'])

    # === USERS ===
    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('teacher_id', UUID, nullable=True),
        sa.Column('student_id', UUID, nullable=True),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['teacher_id'], ['teachers.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_users_email', 'users', ['email'], unique=True,
                    postgresql_where=sa.text('deleted_at IS NULL'))
    op.create_index('idx_users_role', 'users', ['role'])

    # === SESSIONS ===
    op.create_table(
        'sessions',
        _id(),
        sa.Column('user_id', UUID, nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('issued_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_seen_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token_hash')
    )
    op.create_index('idx_sessions_user_active', 'sessions', ['user_id', 'revoked_at', 'expires_at'])

    # === COURSES ===
    op.create_table(
        'courses',
        _id(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_courses_code', 'courses', ['code'], unique=True,
                    postgresql_where=sa.text('deleted_at IS NULL'))

    # === GROUPS ===
    op.create_table(
        'groups',
        _id(),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('course_id', UUID, nullable=False),
        sa.Column('teacher_id', UUID, nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('schedule', postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default='[]'),
        sa.Column('state', sa.String(length=20), nullable=False, server_default='active'),
        *_timestamps(),
        sa.CheckConstraint('capacity >= 1', name='ck_groups_capacity_positive'),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['teacher_id'], ['teachers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_groups_course', 'groups', ['course_id'])
    op.create_index('idx_groups_teacher', 'groups', ['teacher_id'])

    # === GROUP ENROLLMENTS ===
    op.create_table(
        'group_enrollments',
        _id(),
        sa.Column('group_id', UUID, nullable=False),
        sa.Column('student_id', UUID, nullable=False),
        sa.Column('state', sa.String(length=20), nullable=False, server_default='enrolled'),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('withdrawn_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('group_id', 'student_id', name='uq_enrollment_group_student')
    )
    op.create_index('idx_enrollments_group_state', 'group_enrollments', ['group_id', 'state'])
    op.create_index('idx_enrollments_student', 'group_enrollments', ['student_id'])

    # === ATTENDANCE ===
    op.create_table(
        'attendance',
        _id(),
        sa.Column('student_id', UUID, nullable=False),
        sa.Column('group_id', UUID, nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('recorded_by', UUID, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id', 'group_id', 'date', name='uq_attendance_student_group_date')
    )
    op.create_index('idx_attendance_group_date', 'attendance', ['group_id', 'date'])

    # === TIMETABLE ===
    op.create_table(
        'timetable_entries',
        _id(),
        sa.Column('group_id', UUID, nullable=False),
        sa.Column('weekday', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('room', sa.String(length=100), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('start_time < end_time', name='ck_timetable_time_order'),
        sa.CheckConstraint('weekday >= 0 AND weekday <= 6', name='ck_timetable_weekday'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_timetable_group_day', 'timetable_entries', ['group_id', 'weekday'])
    op.create_index('idx_timetable_room_day', 'timetable_entries', ['room', 'weekday'])

    # === EXAMS ===
    op.create_table(
        'exams',
        _id(),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('group_id', UUID, nullable=False),
        sa.Column('course_id', UUID, nullable=False),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('room', sa.String(length=100), nullable=True),
        sa.Column('total_marks', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('passing_marks', sa.Integer(), nullable=False, server_default='50'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='scheduled'),
        *_timestamps(),
        sa.CheckConstraint('start_at < end_at', name='ck_exams_time_order'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_exams_group_start', 'exams', ['group_id', 'start_at'])
    op.create_index('idx_exams_course_start', 'exams', ['course_id', 'start_at'])

    op.create_table(
        'exam_results',
        _id(),
        sa.Column('exam_id', UUID, nullable=False),
        sa.Column('student_id', UUID, nullable=False),
        sa.Column('marks_obtained', sa.Numeric(6, 2), nullable=False),
        sa.Column('percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('passed', sa.Boolean(), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('graded_by', UUID, nullable=False),
        sa.Column('graded_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['exam_id'], ['exams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['graded_by'], ['users.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('exam_id', 'student_id', name='uq_exam_result_student')
    )

    # === CALENDAR EVENTS ===
    op.create_table(
        'calendar_events',
        _id(),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=200), nullable=True),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('group_id', UUID, nullable=True),
        sa.Column('course_id', UUID, nullable=True),
        sa.Column('teacher_id', UUID, nullable=True),
        sa.Column('created_by', UUID, nullable=True),
        *_timestamps(),
        sa.CheckConstraint('start_at < end_at', name='ck_events_time_order'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['teacher_id'], ['teachers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_events_start', 'calendar_events', ['start_at'])

    # === APPLICATIONS ===
    op.create_table(
        'applications',
        _id(),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('course_id', UUID, nullable=False),
        sa.Column('preferred_group_id', UUID, nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='submitted'),
        sa.Column('reviewer_id', UUID, nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('enrolled_student_id', UUID, nullable=True),
        sa.Column('enrolled_group_id', UUID, nullable=True),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['preferred_group_id'], ['groups.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['reviewer_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['enrolled_student_id'], ['students.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['enrolled_group_id'], ['groups.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_applications_status', 'applications', ['status'])
    op.create_index('idx_applications_course', 'applications', ['course_id'])

    # === BILLING ===
    op.create_table(
        'recurring_invoice_schedules',
        _id(),
        sa.Column('student_id', UUID, nullable=False),
        sa.Column('group_id', UUID, nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('cadence', sa.String(length=20), nullable=False),
        sa.Column('anchor_date', sa.Date(), nullable=False),
        sa.Column('next_due_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('due_days', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('last_generated_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('amount > 0', name='ck_schedules_amount_positive'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_schedules_active_due', 'recurring_invoice_schedules', ['active', 'next_due_date'])
    op.create_index('idx_schedules_student', 'recurring_invoice_schedules', ['student_id'])

    op.create_table(
        'invoices',
        _id(),
        sa.Column('invoice_number', sa.String(length=50), nullable=False),
        sa.Column('student_id', UUID, nullable=False),
        sa.Column('schedule_id', UUID, nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('period_start', sa.Date(), nullable=False),
        sa.Column('period_end', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='issued'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['schedule_id'], ['recurring_invoice_schedules.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invoice_number'),
        sa.UniqueConstraint('schedule_id', 'period_start', name='uq_invoice_schedule_period')
    )
    op.create_index('idx_invoices_student', 'invoices', ['student_id', 'period_start'])

    # === WAITLIST ===
    op.create_table(
        'waitlist_entries',
        _id(),
        sa.Column('group_id', UUID, nullable=False),
        sa.Column('student_id', UUID, nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='waiting'),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('offered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_waitlist_group_status_pos', 'waitlist_entries', ['group_id', 'status', 'position'])

    # === AUDIT LOGS ===
    op.create_table(
        'audit_logs',
        sa.Column('seq', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('id', UUID, nullable=False),
        sa.Column('user_id', UUID, nullable=True),
        sa.Column('request_id', sa.String(length=64), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('resource', sa.String(length=50), nullable=False),
        sa.Column('resource_id', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('old_value', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('new_value', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('error_msg', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('seq'),
        sa.UniqueConstraint('id')
    )
    op.create_index('idx_audit_created', 'audit_logs', ['created_at', 'seq'])
    op.create_index('idx_audit_resource', 'audit_logs', ['resource', 'resource_id'])
    op.create_index('idx_audit_user', 'audit_logs', ['user_id'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('waitlist_entries')
    op.drop_table('invoices')
    op.drop_table('recurring_invoice_schedules')
    op.drop_table('applications')
    op.drop_table('calendar_events')
    op.drop_table('exam_results')
    op.drop_table('exams')
    op.drop_table('timetable_entries')
    op.drop_table('attendance')
    op.drop_table('group_enrollments')
    op.drop_table('groups')
    op.drop_table('courses')
    op.drop_table('sessions')
    op.drop_table('users')
    op.drop_table('students')
    op.drop_table('teachers')
