"""Create users and lead submission tables

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op  # type: ignore

# revision identifiers, used by Alembic.
revision: str = "a1c3e5f7b9d2"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="USER"),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "contact_submissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("company", sa.String(200), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="new"),
        sa.Column("reference", sa.String(120), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_contact_submissions_email", "contact_submissions", ["email"]
    )

    op.create_table(
        "project_inquiries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("company", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("role", sa.String(100), nullable=True),
        sa.Column("project_description", sa.Text(), nullable=False),
        sa.Column("service_interests", sa.JSON(), nullable=False),
        sa.Column("contact_method", sa.String(20), nullable=False),
        sa.Column("timeline", sa.String(100), nullable=True),
        sa.Column("budget", sa.String(100), nullable=True),
        sa.Column("primary_category", sa.String(200), nullable=True),
        sa.Column("assigned_staff", sa.JSON(), nullable=True),
        sa.Column("detected_keywords", sa.JSON(), nullable=True),
        sa.Column("confidence_score", sa.Float(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="new"),
        sa.Column("reference", sa.String(120), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_index("ix_project_inquiries_email", "project_inquiries", ["email"])


def downgrade() -> None:
    op.drop_index("ix_project_inquiries_email", table_name="project_inquiries")
    op.drop_table("project_inquiries")
    op.drop_index("ix_contact_submissions_email", table_name="contact_submissions")
    op.drop_table("contact_submissions")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
