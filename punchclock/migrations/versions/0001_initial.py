"""Initial punch event schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17 00:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

punch_type = sa.Enum(
    "ENTRY",
    "LUNCH_START",
    "LUNCH_END",
    "EXIT",
    name="punch_type",
)


def upgrade() -> None:
    op.create_table(
        "punch_events",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("identity", sa.String(length=255), nullable=False),
        sa.Column("punch_type", punch_type, nullable=False),
        sa.Column("ts_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("local_day", sa.Date(), nullable=False),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lon", sa.Float(), nullable=True),
        sa.Column("distance_m", sa.Float(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.UniqueConstraint(
            "identity",
            "local_day",
            "punch_type",
            name="uq_punch_events_identity_day_type",
        ),
    )
    op.create_index("ix_punch_events_identity", "punch_events", ["identity"], unique=False)
    op.create_index("ix_punch_events_ts_utc", "punch_events", ["ts_utc"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_punch_events_ts_utc", table_name="punch_events")
    op.drop_index("ix_punch_events_identity", table_name="punch_events")
    op.drop_table("punch_events")
    punch_type.drop(op.get_bind(), checkfirst=True)
