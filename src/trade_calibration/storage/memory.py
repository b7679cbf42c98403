"""In-memory store implementations.

Used by tests, replays and any caller that already holds its
recommendations in a list.  Both satisfy the protocols in
:mod:`trade_calibration.core.interfaces`.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable

from trade_calibration.core.models import CalibrationData, Recommendation


class InMemoryRecommendationStore:
    """Recommendation store backed by a plain list."""

    def __init__(self, recommendations: Iterable[Recommendation] | None = None) -> None:
        self._records: list[Recommendation] = list(recommendations or [])

    def add(self, recommendation: Recommendation) -> None:
        self._records.append(recommendation)

    def extend(self, recommendations: Iterable[Recommendation]) -> None:
        self._records.extend(recommendations)

    def __len__(self) -> int:
        return len(self._records)

    async def fetch(
        self,
        market: str | None = None,
        days: int | None = None,
        now: datetime | None = None,
    ) -> list[Recommendation]:
        records = self._records
        if market is not None:
            records = [r for r in records if r.market == market]
        if days is not None:
            cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
            records = [r for r in records if r.timestamp >= cutoff]
        # sorted() is stable: equal timestamps keep insertion order
        return sorted(records, key=lambda r: r.timestamp)


class InMemoryCalibrationStore:
    """Calibration store keeping every saved calibration."""

    def __init__(self) -> None:
        self._records: list[tuple[int, CalibrationData]] = []

    async def save(self, calibration: CalibrationData) -> int:
        record_id = len(self._records) + 1
        self._records.append((record_id, calibration))
        return record_id

    async def latest(self, market: str) -> CalibrationData | None:
        matches = [(c.computed_at, rid, c) for rid, c in self._records if c.market == market]
        if not matches:
            return None
        return max(matches, key=lambda m: (m[0], m[1]))[2]

    async def history(self, market: str) -> list[CalibrationData]:
        """All calibrations for ``market``, oldest first."""
        return sorted(
            (c for _, c in self._records if c.market == market),
            key=lambda c: c.computed_at,
        )
