# backend/alembic/versions/001_scheduling_core.py
"""Scheduling core - instructors, availability, bookings, reminders

Revision ID: 001_scheduling_core
Revises:
Create Date: 2024-06-01 00:00:00.000000

Bookings are self-contained (date and times live on the booking). On
PostgreSQL an exclusion constraint keeps active bookings of one instructor
from overlapping even if two writers slip past the application-level lock.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_scheduling_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _is_postgres() -> bool:
    return op.get_bind().dialect.name == "postgresql"


def upgrade() -> None:
    """Create all scheduling tables."""
    print("Creating scheduling tables...")

    op.create_table(
        "instructors",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_instructors_id", "instructors", ["id"])

    op.create_table(
        "instructor_courses",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("instructor_id", sa.String(26), nullable=False),
        sa.Column("course_id", sa.String(26), nullable=False),
        sa.ForeignKeyConstraint(["instructor_id"], ["instructors.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("instructor_id", "course_id", name="uq_instructor_course"),
    )
    op.create_index("ix_instructor_courses_instructor_id", "instructor_courses", ["instructor_id"])
    op.create_index("ix_instructor_courses_course_id", "instructor_courses", ["course_id"])

    op.create_table(
        "instructor_availability",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("instructor_id", sa.String(26), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("recurrence_pattern", sa.String(10), nullable=True),
        sa.Column("recurrence_end_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["instructor_id"], ["instructors.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("start_time < end_time", name="check_availability_time_order"),
        sa.CheckConstraint(
            "recurrence_pattern IS NULL OR recurrence_pattern IN ('daily', 'weekly', 'monthly')",
            name="ck_availability_recurrence_pattern",
        ),
        sa.CheckConstraint(
            "is_recurring = false OR recurrence_pattern IS NOT NULL",
            name="ck_availability_recurring_has_pattern",
        ),
    )
    op.create_index("ix_instructor_availability_date", "instructor_availability", ["date"])
    op.create_index(
        "idx_availability_instructor_date", "instructor_availability", ["instructor_id", "date"]
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("student_id", sa.String(26), nullable=False),
        sa.Column("instructor_id", sa.String(26), nullable=False),
        sa.Column("course_id", sa.String(26), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="scheduled"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["instructor_id"], ["instructors.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'in_progress', 'completed', 'cancelled', 'rescheduled')",
            name="ck_bookings_status",
        ),
        sa.CheckConstraint("duration_minutes > 0", name="check_duration_positive"),
        sa.CheckConstraint("start_time < end_time", name="check_time_order"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_student_id", "bookings", ["student_id"])
    op.create_index("ix_bookings_booking_date", "bookings", ["booking_date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_instructor_date", "bookings", ["instructor_id", "booking_date"])

    if _is_postgres():
        print("Adding booking overlap exclusion constraint...")
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE bookings
            ADD CONSTRAINT bookings_no_overlap_per_instructor
            EXCLUDE USING gist (
                instructor_id WITH =,
                tsrange(booking_date + start_time, booking_date + end_time, '[)') WITH &&
            )
            WHERE (status IN ('scheduled', 'confirmed', 'in_progress'))
            """
        )

    op.create_table(
        "reminder_entries",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=False),
        sa.Column("recipient_id", sa.String(26), nullable=False),
        sa.Column("offset_minutes", sa.Integer(), nullable=False),
        sa.Column("scheduled_send_time", sa.DateTime(), nullable=False),
        sa.Column("channel_set", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("template_data", sa.JSON(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("booking_id", "offset_minutes", name="uq_reminder_booking_offset"),
        sa.CheckConstraint(
            "status IN ('pending', 'sent', 'cancelled')", name="ck_reminder_entries_status"
        ),
        sa.CheckConstraint("offset_minutes > 0", name="check_offset_positive"),
    )
    op.create_index("ix_reminder_entries_booking_id", "reminder_entries", ["booking_id"])
    op.create_index(
        "ix_reminder_entries_due", "reminder_entries", ["status", "scheduled_send_time"]
    )

    op.create_table(
        "schedule_locks",
        sa.Column("instructor_id", sa.String(26), nullable=False),
        sa.Column("lock_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["instructor_id"], ["instructors.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("instructor_id", "lock_date"),
    )

    print("Scheduling tables created successfully!")


def downgrade() -> None:
    """Drop all scheduling tables."""
    print("Dropping scheduling tables...")

    op.drop_table("schedule_locks")
    op.drop_index("ix_reminder_entries_due", table_name="reminder_entries")
    op.drop_index("ix_reminder_entries_booking_id", table_name="reminder_entries")
    op.drop_table("reminder_entries")
    if _is_postgres():
        op.execute(
            "ALTER TABLE bookings DROP CONSTRAINT IF EXISTS bookings_no_overlap_per_instructor"
        )
    op.drop_index("ix_bookings_instructor_date", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_booking_date", table_name="bookings")
    op.drop_index("ix_bookings_student_id", table_name="bookings")
    op.drop_index("ix_bookings_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("idx_availability_instructor_date", table_name="instructor_availability")
    op.drop_index("ix_instructor_availability_date", table_name="instructor_availability")
    op.drop_table("instructor_availability")
    op.drop_index("ix_instructor_courses_course_id", table_name="instructor_courses")
    op.drop_index("ix_instructor_courses_instructor_id", table_name="instructor_courses")
    op.drop_table("instructor_courses")
    op.drop_index("ix_instructors_id", table_name="instructors")
    op.drop_table("instructors")

    print("Scheduling tables dropped.")
