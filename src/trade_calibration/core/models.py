"""Core domain models used across the calibration engine.

These are the canonical records exchanged between the simulator, the
analyzers, the calibration computer and the storage adapters. Store
adapters convert their rows into these types; nothing storage-specific
leaks past them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from pydantic import AwareDatetime, BaseModel, Field, ValidationError, model_validator

from .enums import Action, Direction, Timeframe
from .errors import InvalidInputError


# ---------------------------------------------------------------------------
# Recommendation (input)
# ---------------------------------------------------------------------------

class Recommendation(BaseModel):
    """A single directional recommendation for one market."""

    model_config = {"frozen": True}

    timestamp: AwareDatetime
    market: str
    action: Action
    price: float = Field(gt=0, allow_inf_nan=False)
    confidence: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)
    raw_confidence: float | None = Field(
        default=None, ge=0.0, le=1.0, allow_inf_nan=False,
    )
    size_usd: float | None = Field(default=None, gt=0, allow_inf_nan=False)

    # Descriptive fields carried through from the recommendation store
    id: int | None = None
    timeframe: Timeframe | None = None
    reasoning: str | None = None
    risk_factors: list[str] | None = None


def parse_recommendations(rows: Iterable[dict[str, Any]]) -> list[Recommendation]:
    """Validate raw rows into :class:`Recommendation` records.

    Raises:
        InvalidInputError: If any row has an unknown action, a
            non-finite or non-positive price/size, or an out-of-range
            confidence.
    """
    parsed: list[Recommendation] = []
    for i, row in enumerate(rows):
        try:
            parsed.append(Recommendation.model_validate(row))
        except ValidationError as exc:
            raise InvalidInputError(
                f"Invalid recommendation at index {i}: {exc.errors()[0]['msg']}"
            ) from exc
    return parsed


# ---------------------------------------------------------------------------
# ClosedTrade (simulator output)
# ---------------------------------------------------------------------------

class ClosedTrade(BaseModel):
    """A realized round-trip produced by the position simulator."""

    model_config = {"frozen": True}

    market: str
    entry_time: datetime
    exit_time: datetime
    direction: Direction
    entry_price: float
    exit_price: float
    size_usd: float
    confidence: float
    raw_confidence: float | None = None
    pnl_usd: float
    pnl_percent: float

    @property
    def is_winner(self) -> bool:
        return self.pnl_usd > 0

    @model_validator(mode="after")
    def _check_times(self) -> ClosedTrade:
        if self.exit_time < self.entry_time:
            raise ValueError("exit_time must not precede entry_time")
        return self


# ---------------------------------------------------------------------------
# Calibration
# ---------------------------------------------------------------------------

class CalibrationPoint(BaseModel):
    """One knot of the piecewise-linear calibration curve."""

    model_config = {"frozen": True}

    raw_confidence: float = Field(ge=0.0, le=1.0)
    calibrated_confidence: float = Field(ge=0.0, le=1.0)


class CalibrationData(BaseModel):
    """Calibration curve and summary statistics for one market.

    ``points`` must be sorted by raw confidence with non-decreasing
    calibrated confidence; a curve violating this is rejected.
    """

    model_config = {"frozen": True}

    market: str
    window_days: int
    points: tuple[CalibrationPoint, ...]
    sample_size: int
    correlation: float = Field(ge=-1.0, le=1.0)
    high_conf_win_rate: float = 0.0
    low_conf_win_rate: float = 0.0
    computed_at: datetime

    @model_validator(mode="after")
    def _check_monotonic(self) -> CalibrationData:
        for prev, cur in zip(self.points, self.points[1:]):
            if cur.raw_confidence < prev.raw_confidence:
                raise ValueError("calibration points must be sorted by raw_confidence")
            if cur.calibrated_confidence < prev.calibrated_confidence:
                raise ValueError("calibrated_confidence must be non-decreasing")
        return self

    @property
    def win_rate_gap(self) -> float:
        return self.high_conf_win_rate - self.low_conf_win_rate
