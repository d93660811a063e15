"""Important dates table.

Revision ID: 002_important_dates
Revises: 001_initial
Create Date: 2026-10-19
"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "002_important_dates"
down_revision: Union[str, Sequence[str], None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "important_dates",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("date_description", sa.String(length=255), nullable=False),
        sa.Column("date_value", sa.String(length=100), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_important_dates_year", "important_dates", ["year"], unique=False)
    op.create_index("ix_important_dates_category", "important_dates", ["category"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_important_dates_category", table_name="important_dates")
    op.drop_index("ix_important_dates_year", table_name="important_dates")
    op.drop_table("important_dates")
