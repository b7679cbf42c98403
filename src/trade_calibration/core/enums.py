"""Enumerations used across the calibration engine."""

from enum import Enum


class Action(str, Enum):
    """Recommended action carried by a recommendation record."""

    LONG = "long"
    SHORT = "short"
    HOLD = "hold"
    CLOSE = "close"


class Direction(str, Enum):
    """Side of an open or closed position."""

    LONG = "long"
    SHORT = "short"


class PositionState(str, Enum):
    """Simulator position state. Scoped to a single simulation run."""

    FLAT = "flat"
    LONG = "long"
    SHORT = "short"

    @property
    def direction(self) -> Direction | None:
        if self is PositionState.LONG:
            return Direction.LONG
        if self is PositionState.SHORT:
            return Direction.SHORT
        return None


class HealthStatus(str, Enum):
    """Calibration health classification for a market."""

    HEALTHY = "HEALTHY"
    WARNING = "WARNING"
    NEEDS_RECALIBRATION = "NEEDS_RECALIBRATION"
    MISSING = "MISSING"


class Timeframe(str, Enum):
    """Expected holding period of a recommendation."""

    INTRADAY = "intraday"
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"
