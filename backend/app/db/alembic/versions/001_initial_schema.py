"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates:
- account
- trip
- activity
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all tables."""
    # account table
    op.create_table(
        "account",
        sa.Column("account_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=False),
        sa.Column("credential_hash", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("email", name="uq_account_email"),
    )

    # trip table
    op.create_table(
        "trip",
        sa.Column("trip_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("destination", sa.Text(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["account.account_id"]),
    )
    op.create_index("idx_trip_owner_start", "trip", ["owner_id", "start_date"])

    # activity table
    op.create_table(
        "activity",
        sa.Column("activity_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("trip_id", sa.Integer(), nullable=False),
        sa.Column("day_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("time", sa.Text(), nullable=True),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("cost", sa.Numeric(9, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("completed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["trip_id"], ["trip.trip_id"], ondelete="CASCADE"),
    )
    op.create_index("idx_activity_trip_day", "activity", ["trip_id", "day_number"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("idx_activity_trip_day", table_name="activity")
    op.drop_table("activity")
    op.drop_index("idx_trip_owner_start", table_name="trip")
    op.drop_table("trip")
    op.drop_table("account")
