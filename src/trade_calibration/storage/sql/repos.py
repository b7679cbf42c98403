"""SQL-backed stores for recommendations and calibrations.

Each store is constructed with an :class:`async_sessionmaker` (see
:func:`trade_calibration.storage.sql.connection.create_session_factory`)
and opens one scoped session per call.  Database failures surface as
:class:`~trade_calibration.core.errors.StorageError`.

Conversion helpers translate between core models
(:mod:`trade_calibration.core.models`) and ORM records.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Sequence

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from trade_calibration.core.errors import InvalidInputError, StorageError
from trade_calibration.core.models import (
    CalibrationData,
    CalibrationPoint,
    Recommendation,
)

from .connection import session_scope
from .models import CalibrationRecord, RecommendationRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------

def _as_utc(ts: datetime) -> datetime:
    """SQLite drops tzinfo on the way back; every stored time is UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _recommendation_to_record(rec: Recommendation) -> RecommendationRecord:
    return RecommendationRecord(
        timestamp=_as_utc(rec.timestamp),
        market=rec.market,
        price=rec.price,
        action=rec.action.value,
        confidence=rec.confidence,
        raw_confidence=rec.raw_confidence,
        size_usd=rec.size_usd,
        timeframe=rec.timeframe.value if rec.timeframe else None,
        reasoning=rec.reasoning,
        risk_factors=rec.risk_factors,
    )


def _record_to_recommendation(record: RecommendationRecord) -> Recommendation:
    try:
        return Recommendation(
            id=record.id,
            timestamp=_as_utc(record.timestamp),
            market=record.market,
            price=record.price,
            action=record.action,
            confidence=record.confidence,
            raw_confidence=record.raw_confidence,
            size_usd=record.size_usd,
            timeframe=record.timeframe,
            reasoning=record.reasoning,
            risk_factors=record.risk_factors,
        )
    except ValidationError as exc:
        raise InvalidInputError(
            f"Invalid stored recommendation id={record.id}: {exc.errors()[0]['msg']}"
        ) from exc


def _calibration_to_record(cal: CalibrationData) -> CalibrationRecord:
    return CalibrationRecord(
        timestamp=_as_utc(cal.computed_at),
        market=cal.market,
        window_days=cal.window_days,
        calibration_data=[p.model_dump() for p in cal.points],
        sample_size=cal.sample_size,
        correlation=cal.correlation,
        high_conf_win_rate=cal.high_conf_win_rate,
        low_conf_win_rate=cal.low_conf_win_rate,
    )


def _record_to_calibration(record: CalibrationRecord) -> CalibrationData:
    return CalibrationData(
        market=record.market,
        window_days=record.window_days,
        points=tuple(CalibrationPoint(**p) for p in record.calibration_data),
        sample_size=record.sample_size,
        correlation=record.correlation,
        high_conf_win_rate=record.high_conf_win_rate or 0.0,
        low_conf_win_rate=record.low_conf_win_rate or 0.0,
        computed_at=_as_utc(record.timestamp),
    )


# ---------------------------------------------------------------------------
# SqlRecommendationStore
# ---------------------------------------------------------------------------

class SqlRecommendationStore:
    """Recommendation store over the ``trade_recommendations`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = session_factory

    async def add(self, recommendation: Recommendation) -> int:
        """Persist a recommendation and return its row id."""
        record = _recommendation_to_record(recommendation)
        try:
            async with session_scope(self._sessions) as session:
                session.add(record)
                await session.flush()
                return record.id
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to save recommendation: {exc}") from exc

    async def fetch(
        self,
        market: str | None = None,
        days: int | None = None,
        now: datetime | None = None,
    ) -> list[Recommendation]:
        """Return matching recommendations, oldest first."""
        stmt = select(RecommendationRecord).order_by(
            RecommendationRecord.timestamp.asc(),
            RecommendationRecord.id.asc(),
        )
        if market is not None:
            stmt = stmt.where(RecommendationRecord.market == market)
        if days is not None:
            cutoff = _as_utc(now or datetime.now(timezone.utc)) - timedelta(days=days)
            stmt = stmt.where(RecommendationRecord.timestamp >= cutoff)

        try:
            async with session_scope(self._sessions) as session:
                result = await session.execute(stmt)
                records: Sequence[RecommendationRecord] = result.scalars().all()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to fetch recommendations: {exc}") from exc

        logger.debug("Fetched %d recommendations (market=%s, days=%s)", len(records), market, days)
        return [_record_to_recommendation(r) for r in records]


# ---------------------------------------------------------------------------
# SqlCalibrationStore
# ---------------------------------------------------------------------------

class SqlCalibrationStore:
    """Calibration store over the ``confidence_calibrations`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = session_factory

    async def save(self, calibration: CalibrationData) -> int:
        record = _calibration_to_record(calibration)
        try:
            async with session_scope(self._sessions) as session:
                session.add(record)
                await session.flush()
                return record.id
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to save calibration: {exc}") from exc

    async def latest(self, market: str) -> CalibrationData | None:
        """Most recently computed calibration for ``market``, if any."""
        stmt = (
            select(CalibrationRecord)
            .where(CalibrationRecord.market == market)
            .order_by(CalibrationRecord.timestamp.desc(), CalibrationRecord.id.desc())
            .limit(1)
        )
        try:
            async with session_scope(self._sessions) as session:
                result = await session.execute(stmt)
                record = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load calibration for {market}: {exc}") from exc

        if record is None:
            return None
        return _record_to_calibration(record)
