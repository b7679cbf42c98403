"""SQLAlchemy ORM models for recommendations and calibrations.

Timestamps are stored UTC.  JSON columns use JSONB on PostgreSQL and the
generic JSON type elsewhere (SQLite in tests and local runs).

Tables:
    trade_recommendations     one row per recorded recommendation
    confidence_calibrations   one row per computed calibration curve
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Float, Index, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

JSONType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Declarative base
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""

    pass


# ---------------------------------------------------------------------------
# RecommendationRecord
# ---------------------------------------------------------------------------

class RecommendationRecord(Base):
    """A recorded trade recommendation."""

    __tablename__ = "trade_recommendations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    market: Mapped[str] = mapped_column(String(32), nullable=False)
    price: Mapped[float] = mapped_column(Numeric(30, 10, asdecimal=False), nullable=False)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    confidence: Mapped[float] = mapped_column(Float(), nullable=False)
    raw_confidence: Mapped[float | None] = mapped_column(
        Float(), nullable=True,
    )
    size_usd: Mapped[float | None] = mapped_column(
        Numeric(30, 10, asdecimal=False), nullable=True,
    )
    timeframe: Mapped[str | None] = mapped_column(String(16), nullable=True)
    reasoning: Mapped[str | None] = mapped_column(Text, nullable=True)
    risk_factors: Mapped[list | None] = mapped_column(JSONType, nullable=True)

    __table_args__ = (
        Index("tr_market_idx", "market"),
        Index("tr_timestamp_idx", "timestamp"),
        Index("tr_action_idx", "action"),
        Index("tr_raw_confidence_idx", "raw_confidence"),
    )

    def __repr__(self) -> str:
        return (
            f"<RecommendationRecord {self.id} {self.market} "
            f"{self.action} conf={self.confidence}>"
        )


# ---------------------------------------------------------------------------
# CalibrationRecord
# ---------------------------------------------------------------------------

class CalibrationRecord(Base):
    """A computed calibration curve with its summary statistics."""

    __tablename__ = "confidence_calibrations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    market: Mapped[str] = mapped_column(String(255), nullable=False)
    window_days: Mapped[int] = mapped_column(Integer, nullable=False)
    # [{"raw_confidence": 0.0, "calibrated_confidence": 0.4}, ...]
    calibration_data: Mapped[list] = mapped_column(JSONType, nullable=False)
    sample_size: Mapped[int] = mapped_column(Integer, nullable=False)
    correlation: Mapped[float] = mapped_column(Float(), nullable=False)
    high_conf_win_rate: Mapped[float | None] = mapped_column(
        Float(), nullable=True,
    )
    low_conf_win_rate: Mapped[float | None] = mapped_column(
        Float(), nullable=True,
    )

    __table_args__ = (
        Index("cc_market_timestamp_idx", "market", "timestamp"),
        Index("cc_timestamp_idx", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"<CalibrationRecord {self.id} {self.market} "
            f"n={self.sample_size} r={self.correlation}>"
        )
