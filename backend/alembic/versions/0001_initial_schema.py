"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("date", sa.Date()),
        sa.Column("location", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("phase_mode", sa.Text(), nullable=False, server_default=sa.text("'manual'")),
        sa.Column("current_phase", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("phase1_start_date", sa.DateTime()),
        sa.Column("phase1_end_date", sa.DateTime()),
        sa.Column("phase2_start_date", sa.DateTime()),
        sa.Column("phase2_end_date", sa.DateTime()),
        sa.Column("phase1_max_bookings", sa.Integer(), nullable=False, server_default=sa.text("3")),
        sa.Column("phase2_max_bookings", sa.Integer(), nullable=False, server_default=sa.text("6")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("phase_mode IN ('manual', 'date-based')", name="ck_events_phase_mode"),
        sa.CheckConstraint("current_phase IN (0, 1, 2)", name="ck_events_current_phase"),
    )

    op.create_table(
        "companies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "event_participants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        sa.Column("slot_capacity", sa.Integer()),
        sa.UniqueConstraint("event_id", "company_id"),
        sa.CheckConstraint("slot_capacity IS NULL OR slot_capacity >= 1", name="ck_participants_capacity"),
    )

    op.create_table(
        "offers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="SET NULL")),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "students",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), unique=True),
        sa.Column("is_deprioritized", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "speed_recruiting_sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("interview_duration_minutes", sa.Integer(), nullable=False, server_default=sa.text("15")),
        sa.Column("buffer_minutes", sa.Integer(), nullable=False, server_default=sa.text("5")),
        sa.Column("slots_per_time", sa.Integer(), nullable=False, server_default=sa.text("2")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("start_time < end_time", name="valid_time_range"),
        sa.CheckConstraint("interview_duration_minutes > 0", name="positive_duration"),
        sa.CheckConstraint("buffer_minutes >= 0", name="positive_buffer"),
        sa.CheckConstraint("slots_per_time > 0", name="positive_capacity"),
    )
    op.create_index(
        "ix_speed_recruiting_sessions_event_id", "speed_recruiting_sessions", ["event_id"]
    )

    op.create_table(
        "event_slots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "session_id",
            sa.Integer(),
            sa.ForeignKey("speed_recruiting_sessions.id", ondelete="CASCADE"),
        ),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        sa.Column("offer_id", sa.Integer(), sa.ForeignKey("offers.id", ondelete="SET NULL")),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default=sa.text("2")),
        sa.Column("booked_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("session_id", "company_id", "start_time"),
        sa.CheckConstraint("start_time < end_time", name="ck_slots_time_range"),
        sa.CheckConstraint("capacity >= 1", name="ck_slots_capacity"),
        sa.CheckConstraint(
            "booked_count >= 0 AND booked_count <= capacity", name="ck_slots_booked_count"
        ),
    )
    op.create_index("ix_event_slots_session_id", "event_slots", ["session_id"])
    op.create_index("ix_event_slots_company_event", "event_slots", ["company_id", "event_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("slot_id", sa.Integer(), sa.ForeignKey("event_slots.id", ondelete="CASCADE"), nullable=False),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("students.id", ondelete="CASCADE"), nullable=False),
        sa.Column("offer_id", sa.Integer(), sa.ForeignKey("offers.id", ondelete="SET NULL")),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'confirmed'")),
        sa.Column("booking_phase", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("cancelled_at", sa.DateTime()),
        sa.CheckConstraint("status IN ('confirmed', 'cancelled')", name="ck_bookings_status"),
    )
    op.create_index(
        "uq_bookings_slot_student_confirmed",
        "bookings",
        ["slot_id", "student_id"],
        unique=True,
        sqlite_where=sa.text("status = 'confirmed'"),
        postgresql_where=sa.text("status = 'confirmed'"),
    )
    op.create_index("ix_bookings_student_status", "bookings", ["student_id", "status"])


def downgrade():
    op.drop_table("bookings")
    op.drop_table("event_slots")
    op.drop_table("speed_recruiting_sessions")
    op.drop_table("students")
    op.drop_table("offers")
    op.drop_table("event_participants")
    op.drop_table("companies")
    op.drop_table("events")
