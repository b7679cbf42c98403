"""Protocol interfaces for the calibration engine's storage boundary.

The simulator, analyzers and calibration computer never touch storage.
Services that need data receive one of these stores at construction;
in-memory and SQL implementations can be swapped without changing callers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from .models import CalibrationData, Recommendation


@runtime_checkable
class IRecommendationStore(Protocol):
    """Read access to recorded recommendations."""

    async def fetch(
        self,
        market: str | None = None,
        days: int | None = None,
        now: datetime | None = None,
    ) -> list[Recommendation]:
        """Return recommendations ordered by timestamp ascending.

        ``days`` restricts to records newer than ``now - days``.
        """
        ...


@runtime_checkable
class ICalibrationStore(Protocol):
    """Persistence for computed calibrations."""

    async def save(self, calibration: CalibrationData) -> int: ...

    async def latest(self, market: str) -> CalibrationData | None: ...
