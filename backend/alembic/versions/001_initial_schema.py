"""Initial schema: companies, users, jobs, shifts, assignments, time entries, timesheets, audit log

Revision ID: 001
Revises:
Create Date: 2026-10-16
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def upgrade() -> None:
    # --- companies ---
    op.create_table(
        "companies",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("website", sa.String(500), nullable=True),
        *_timestamps(),
    )

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False, server_default="Staff"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column(
            "company_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("companies.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_company_id", "users", ["company_id"])

    # --- jobs ---
    op.create_table(
        "jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="Pending"),
        sa.Column("location", sa.String(500), nullable=True),
        sa.Column(
            "company_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index("ix_jobs_company_id", "jobs", ["company_id"])

    # --- shifts ---
    op.create_table(
        "shifts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "job_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("jobs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="Pending"),
        sa.Column("location", sa.String(500), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("requested_workers", sa.Integer(), nullable=True),
        sa.Column("required_crew_chiefs", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("required_stagehands", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("required_fork_operators", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("required_reach_fork_operators", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("required_riggers", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("required_general_laborers", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("required_crew_chiefs >= 0", name="ck_shift_cc_nonneg"),
        sa.CheckConstraint("required_stagehands >= 0", name="ck_shift_sh_nonneg"),
        sa.CheckConstraint("required_fork_operators >= 0", name="ck_shift_fo_nonneg"),
        sa.CheckConstraint("required_reach_fork_operators >= 0", name="ck_shift_rfo_nonneg"),
        sa.CheckConstraint("required_riggers >= 0", name="ck_shift_rg_nonneg"),
        sa.CheckConstraint("required_general_laborers >= 0", name="ck_shift_gl_nonneg"),
    )
    op.create_index("ix_shifts_job_id", "shifts", ["job_id"])

    # --- assigned_personnel ---
    op.create_table(
        "assigned_personnel",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "shift_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("shifts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("role_code", sa.String(10), nullable=False, server_default="SH"),
        sa.Column("status", sa.String(20), nullable=False, server_default="Assigned"),
        *_timestamps(),
    )
    op.create_index("ix_assigned_personnel_shift_id", "assigned_personnel", ["shift_id"])
    op.create_index("ix_assigned_personnel_user_id", "assigned_personnel", ["user_id"])

    # --- time_entries ---
    op.create_table(
        "time_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "assigned_personnel_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("assigned_personnel.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("entry_number", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("clock_in", sa.DateTime(timezone=True), nullable=False),
        sa.Column("clock_out", sa.DateTime(timezone=True), nullable=True),
        sa.Column("break_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("break_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("entry_number BETWEEN 1 AND 3", name="ck_time_entry_number"),
        sa.CheckConstraint("clock_out IS NULL OR clock_out >= clock_in", name="ck_time_entry_order"),
        sa.UniqueConstraint("assigned_personnel_id", "entry_number", name="uq_time_entry_number"),
    )
    op.create_index("ix_time_entries_assigned_personnel_id", "time_entries", ["assigned_personnel_id"])

    # --- timesheets ---
    op.create_table(
        "timesheets",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "shift_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("shifts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(40), nullable=False, server_default="DRAFT"),
        sa.Column("submitted_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("company_signature", sa.Text(), nullable=True),
        sa.Column("company_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("company_approved_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("company_notes", sa.Text(), nullable=True),
        sa.Column("manager_signature", sa.Text(), nullable=True),
        sa.Column("manager_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("manager_approved_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("manager_notes", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("rejected_stage", sa.String(20), nullable=True),
        sa.Column("unsigned_pdf_key", sa.String(1000), nullable=True),
        sa.Column("signed_pdf_key", sa.String(1000), nullable=True),
        sa.Column("final_pdf_key", sa.String(1000), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
    )
    op.create_index("ix_timesheets_shift_id", "timesheets", ["shift_id"])
    op.create_index("ix_timesheets_status", "timesheets", ["status"])
    # at most one live timesheet per shift; rejected ones stay as history
    op.execute(
        "CREATE UNIQUE INDEX IF NOT EXISTS uq_timesheets_live_shift "
        "ON timesheets (shift_id) WHERE status <> 'REJECTED'"
    )

    # --- audit_log ---
    op.create_table(
        "audit_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("resource_type", sa.String(100), nullable=False),
        sa.Column("resource_id", sa.String(255), nullable=True),
        sa.Column("details", postgresql.JSONB(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_audit_log_actor_id", "audit_log", ["actor_id"])
    op.create_index("ix_audit_log_resource_id", "audit_log", ["resource_id"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.execute("DROP INDEX IF EXISTS uq_timesheets_live_shift")
    op.drop_table("timesheets")
    op.drop_table("time_entries")
    op.drop_table("assigned_personnel")
    op.drop_table("shifts")
    op.drop_table("jobs")
    op.drop_table("users")
    op.drop_table("companies")
