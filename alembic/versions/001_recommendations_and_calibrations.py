"""Add trade_recommendations and confidence_calibrations tables.

Revision ID: 001_recommendations_and_calibrations
Revises:
Create Date: 2025-10-26 13:42:00.000000
"""
from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

revision: str = "001_recommendations_and_calibrations"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "trade_recommendations",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
        sa.Column("market", sa.String(32), nullable=False),
        sa.Column("price", sa.Numeric(30, 10), nullable=False),
        sa.Column("action", sa.String(16), nullable=False),

        # Confidence: calibrated (served) and raw (as generated)
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("raw_confidence", sa.Float(), nullable=True),

        sa.Column("size_usd", sa.Numeric(30, 10), nullable=True),
        sa.Column("timeframe", sa.String(16), nullable=True),
        sa.Column("reasoning", sa.Text, nullable=True),
        sa.Column("risk_factors", JSON_TYPE, nullable=True),
    )
    op.create_index("tr_market_idx", "trade_recommendations", ["market"])
    op.create_index("tr_timestamp_idx", "trade_recommendations", ["timestamp"])
    op.create_index("tr_action_idx", "trade_recommendations", ["action"])
    op.create_index("tr_raw_confidence_idx", "trade_recommendations", ["raw_confidence"])

    op.create_table(
        "confidence_calibrations",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
        sa.Column("market", sa.String(255), nullable=False),
        sa.Column("window_days", sa.Integer, nullable=False),
        sa.Column("calibration_data", JSON_TYPE, nullable=False),
        sa.Column("sample_size", sa.Integer, nullable=False),

        # Summary statistics
        sa.Column("correlation", sa.Float(), nullable=False),
        sa.Column("high_conf_win_rate", sa.Float(), nullable=True),
        sa.Column("low_conf_win_rate", sa.Float(), nullable=True),
    )
    op.create_index("cc_market_timestamp_idx", "confidence_calibrations", ["market", "timestamp"])
    op.create_index("cc_timestamp_idx", "confidence_calibrations", ["timestamp"])


def downgrade() -> None:
    op.drop_table("confidence_calibrations")
    op.drop_table("trade_recommendations")
