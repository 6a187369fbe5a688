"""Initial schema - users, tokens, schools, students.

Revision: 001_initial_schema
Created:  2026-10-19

Append-only: never edit this file after it has been applied to a database.
Schema changes go in a new migration.

Creation order:
  1. users
  2. tokens (FK → users)
  3. schools
  4. students

ON DELETE policies:
  tokens.user_id → CASCADE (token owned by user)

schools.tenant_id and students.tenant_id / users.tenant_id are plain
strings, not foreign keys. The services check that a tenant exists before
attaching students to it.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration - no parent
branch_labels: tuple | None = None
depends_on: tuple | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    ]


def upgrade() -> None:

    # ── Step 1: users ──────────────────────────────────────────────────────

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("tenant_id", sa.String(36), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("email LIKE '%@%'", name="ck_users_email_format"),
        sa.CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
    )

    # ── Step 2: tokens ─────────────────────────────────────────────────────
    # Refresh and reset-password tokens only. type is a VARCHAR, not a
    # native enum, so new token types need no type migration.

    op.create_table(
        "tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("token", sa.String(512), nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_tokens_user"),
            nullable=False,
        ),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("expires", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "blacklisted",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_tokens"),
    )

    # ── Step 3: schools ────────────────────────────────────────────────────

    op.create_table(
        "schools",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("phone", sa.String(50), nullable=False),
        sa.Column("pre_primary", sa.String(200), nullable=True),
        sa.Column("primary", sa.String(200), nullable=True),
        sa.Column("secondary", sa.String(200), nullable=True),
        sa.Column("tenant_id", sa.String(36), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_schools"),
        sa.UniqueConstraint("email", name="uq_schools_email"),
        sa.UniqueConstraint("tenant_id", name="uq_schools_tenant_id"),
        sa.CheckConstraint("email LIKE '%@%'", name="ck_schools_email_format"),
    )

    # ── Step 4: students ───────────────────────────────────────────────────

    op.create_table(
        "students",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("guardian", sa.String(200), nullable=True),
        sa.Column("dob", sa.String(20), nullable=False),
        sa.Column("gender", sa.String(20), nullable=False),
        sa.Column("blood_group", sa.String(10), nullable=True),
        sa.Column("religion", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.String(500), nullable=False),
        sa.Column("state", sa.String(100), nullable=False),
        sa.Column("country", sa.String(100), nullable=False),
        sa.Column("class_name", sa.String(50), nullable=False),
        sa.Column("section", sa.String(50), nullable=False),
        sa.Column("group_name", sa.String(50), nullable=True),
        sa.Column("student_no", sa.String(50), nullable=False),
        sa.Column("roll_no", sa.String(50), nullable=True),
        sa.Column("picture", sa.String(500), nullable=True),
        sa.Column("tenant_id", sa.String(36), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_students"),
        sa.UniqueConstraint("email", name="uq_students_email"),
        sa.CheckConstraint("email LIKE '%@%'", name="ck_students_email_format"),
    )

    # ── Step 5: Indexes ────────────────────────────────────────────────────

    op.create_index("idx_users_tenant", "users", ["tenant_id"])
    op.create_index("idx_tokens_token", "tokens", ["token"])
    op.create_index("idx_tokens_user", "tokens", ["user_id"])
    op.create_index("idx_students_tenant", "students", ["tenant_id"])


def downgrade() -> None:
    """Drop everything created in upgrade(), in reverse dependency order."""
    op.drop_index("idx_students_tenant", table_name="students")
    op.drop_index("idx_tokens_user",     table_name="tokens")
    op.drop_index("idx_tokens_token",    table_name="tokens")
    op.drop_index("idx_users_tenant",    table_name="users")

    op.drop_table("students")
    op.drop_table("schools")
    op.drop_table("tokens")
    op.drop_table("users")
