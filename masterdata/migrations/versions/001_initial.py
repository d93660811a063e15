"""Initial masterdata schema.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PARTY_TABLES = ("sodexo_data", "omc_data", "payroll_data", "toplux_data")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "employees",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("surname", sa.String(length=100), nullable=False),
        sa.Column("ssn", sa.String(length=20), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("mobile", sa.String(length=50), nullable=True),
        sa.Column("rank", sa.String(length=100), nullable=True),
        sa.Column("gender", sa.String(length=30), nullable=True),
        sa.Column("town_district", sa.String(length=100), nullable=True),
        sa.Column("hire_date", sa.Date(), nullable=False),
        sa.Column("termination_date", sa.Date(), nullable=True),
        sa.Column("termination_reason", sa.String(length=500), nullable=True),
        sa.Column("is_terminated", sa.Boolean(), nullable=False),
        sa.Column("is_archived", sa.Boolean(), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_employees_ssn", "employees", ["ssn"], unique=True)
    op.create_index("ix_employees_is_archived", "employees", ["is_archived"], unique=False)

    op.create_table(
        "column_config",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("column_name", sa.String(length=100), nullable=False),
        sa.Column("column_type", sa.String(length=20), nullable=False),
        sa.Column("is_masterdata", sa.Boolean(), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("role_permissions", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_column_config_column_name", "column_config", ["column_name"], unique=False)

    for table in PARTY_TABLES:
        op.create_table(
            table,
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("employee_id", sa.Uuid(), nullable=False),
            sa.Column("data", sa.JSON(), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(f"ix_{table}_employee_id", table, ["employee_id"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    for table in reversed(PARTY_TABLES):
        op.drop_index(f"ix_{table}_employee_id", table_name=table)
        op.drop_table(table)
    op.drop_index("ix_column_config_column_name", table_name="column_config")
    op.drop_table("column_config")
    op.drop_index("ix_employees_is_archived", table_name="employees")
    op.drop_index("ix_employees_ssn", table_name="employees")
    op.drop_table("employees")
