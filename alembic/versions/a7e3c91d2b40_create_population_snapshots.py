"""create population_snapshots

Revision ID: a7e3c91d2b40
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "a7e3c91d2b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "population_snapshots",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),

        sa.Column("area_name", sa.String(length=100), nullable=False),
        sa.Column("area_code", sa.String(length=20), nullable=False, server_default=""),

        sa.Column("congestion_level", sa.String(length=20), nullable=False, server_default=""),
        sa.Column("congestion_message", sa.String(length=500), nullable=True),

        sa.Column("population_min", sa.Integer(), nullable=True),
        sa.Column("population_max", sa.Integer(), nullable=True),

        sa.Column("ppltn_time", sa.String(length=30), nullable=True),
        sa.Column("collected_at", sa.DateTime(timezone=True), nullable=False),

        sa.Column("raw", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    )

    op.create_index(
        "ix_population_snapshots_collected_at",
        "population_snapshots",
        ["collected_at"],
    )
    op.create_index(
        "ix_population_snapshots_area_name_collected_at",
        "population_snapshots",
        ["area_name", "collected_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_population_snapshots_area_name_collected_at", table_name="population_snapshots")
    op.drop_index("ix_population_snapshots_collected_at", table_name="population_snapshots")
    op.drop_table("population_snapshots")
