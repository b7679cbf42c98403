"""Apply a calibration curve to raw confidence scores."""

from __future__ import annotations

from bisect import bisect_right
from datetime import datetime, timedelta
from typing import Sequence

from trade_calibration.core.models import CalibrationData, CalibrationPoint

DEFAULT_MAX_AGE_DAYS = 7.0


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def apply_calibration(
    raw_confidence: float,
    calibration: CalibrationData | Sequence[CalibrationPoint],
) -> float:
    """Map a raw score through the curve by piecewise-linear interpolation.

    Scores outside the curve take the nearest end point's value, an exact
    knot returns that knot's value, and the result is clamped to [0, 1].
    An empty curve leaves the (clamped) raw score unchanged.
    """
    points = calibration.points if isinstance(calibration, CalibrationData) else calibration
    score = _clamp(raw_confidence)

    if not points:
        return score
    if len(points) == 1:
        return _clamp(points[0].calibrated_confidence)

    xs = [p.raw_confidence for p in points]
    i = bisect_right(xs, score)
    if i == 0:
        return _clamp(points[0].calibrated_confidence)
    if i == len(points):
        return _clamp(points[-1].calibrated_confidence)

    lower, upper = points[i - 1], points[i]
    if score == lower.raw_confidence:
        return _clamp(lower.calibrated_confidence)

    span = upper.raw_confidence - lower.raw_confidence
    if span == 0:
        return _clamp(lower.calibrated_confidence)

    fraction = (score - lower.raw_confidence) / span
    return _clamp(
        lower.calibrated_confidence
        + fraction * (upper.calibrated_confidence - lower.calibrated_confidence)
    )


def calibration_age_days(calibration: CalibrationData, now: datetime) -> float:
    return (now - calibration.computed_at) / timedelta(days=1)


def is_stale(
    calibration: CalibrationData | None,
    now: datetime,
    max_age_days: float = DEFAULT_MAX_AGE_DAYS,
) -> bool:
    """True when the calibration is missing or older than ``max_age_days``."""
    if calibration is None:
        return True
    return calibration_age_days(calibration, now) > max_age_days


def calibrated_or_raw(
    raw_confidence: float,
    calibration: CalibrationData | None,
    now: datetime,
    max_age_days: float = DEFAULT_MAX_AGE_DAYS,
) -> float:
    """Calibrated score, or the raw one when no fresh calibration exists."""
    if is_stale(calibration, now, max_age_days):
        return raw_confidence
    return apply_calibration(raw_confidence, calibration)
