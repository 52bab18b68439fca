"""create coingecko_data table

Revision ID: 3f6a1c2b9d10
Revises:
Create Date: 2026-10-19 09:00:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f6a1c2b9d10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "coingecko_data",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nombre", sa.String(length=200), nullable=True),
        sa.Column("simbolo", sa.String(length=50), nullable=False),
        sa.Column("imagen", sa.String(length=512), nullable=True),
        sa.Column("precio_actual", sa.Numeric(50, 24), nullable=True),
        sa.Column("market_cap_rank", sa.Integer(), nullable=True),
        sa.Column("market_cap", sa.Numeric(38, 2), nullable=True),
        sa.Column("volumen_total", sa.Numeric(38, 2), nullable=True),
        sa.UniqueConstraint("simbolo", name="uq_coingecko_data_simbolo"),
    )
    op.create_index("ix_coingecko_data_market_cap_rank", "coingecko_data", ["market_cap_rank"])


def downgrade() -> None:
    op.drop_index("ix_coingecko_data_market_cap_rank", table_name="coingecko_data")
    op.drop_table("coingecko_data")
