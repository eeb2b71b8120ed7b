"""create call_records table

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "call_records",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column(
            "call_date",
            sa.Date(),
            nullable=False,
            comment="Calendar date of the call (CSV column 1, YYYYMMDD)",
        ),
        sa.Column(
            "call_time",
            sa.Time(timezone=False),
            nullable=False,
            comment="Time of day of the call (CSV column 2, HH:mm:ss)",
        ),
        sa.Column(
            "call_close_reason",
            sa.Integer(),
            nullable=False,
            comment="1 = TE Busy, 2 = System Busy, 3 = Others, anything else = unknown",
        ),
        sa.Column(
            "hour_group",
            sa.SmallInteger(),
            nullable=False,
            comment="Hour of call_time, 0-23",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "hour_group >= 0 AND hour_group <= 23",
            name="ck_call_records_hour_group_range",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_call_records"),
    )
    op.create_index("ix_call_records_call_date", "call_records", ["call_date"], unique=False)
    op.create_index(
        "ix_call_records_call_date_hour_group",
        "call_records",
        ["call_date", "hour_group"],
        unique=False,
    )
    op.create_index(
        "ix_call_records_call_close_reason",
        "call_records",
        ["call_close_reason"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_call_records_call_close_reason", table_name="call_records")
    op.drop_index("ix_call_records_call_date_hour_group", table_name="call_records")
    op.drop_index("ix_call_records_call_date", table_name="call_records")
    op.drop_table("call_records")
