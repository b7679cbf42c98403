"""Calibration health classification.

Combines how predictive a market's calibration was (correlation) with how
old it is into a single status and a recommended next step.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from trade_calibration.core.config import HealthConfig
from trade_calibration.core.enums import HealthStatus
from trade_calibration.core.models import CalibrationData

from .applier import calibration_age_days


@dataclass
class CalibrationStatus:
    """Health snapshot for one market."""

    market: str
    status: HealthStatus
    recommendation: str
    interpretation: str = ""
    age_days: int | None = None
    sample_size: int | None = None
    correlation: float | None = None
    high_conf_win_rate: float | None = None
    low_conf_win_rate: float | None = None

    @property
    def has_calibration(self) -> bool:
        return self.status is not HealthStatus.MISSING

    @property
    def win_rate_gap(self) -> float | None:
        if self.high_conf_win_rate is None or self.low_conf_win_rate is None:
            return None
        return self.high_conf_win_rate - self.low_conf_win_rate


def _interpret(correlation: float, age_days: int, config: HealthConfig) -> str:
    if correlation >= 0.3:
        text = "Strong predictive power."
    elif correlation >= 0.2:
        text = "Moderate predictive power."
    elif correlation >= 0.1:
        text = "Weak predictive power."
    elif correlation >= 0.0:
        text = "Very weak predictive power."
    else:
        text = "Anti-predictive (inverted)."

    if age_days > config.recalibrate_after_days:
        text += " Calibration is stale."
    elif age_days > config.warn_after_days:
        text += " Calibration aging."
    else:
        text += " Calibration is fresh."
    return text


def evaluate_health(
    market: str,
    calibration: CalibrationData | None,
    now: datetime,
    config: HealthConfig | None = None,
) -> CalibrationStatus:
    """Classify the latest calibration of ``market``.

    Worst condition wins: NEEDS_RECALIBRATION for a near-zero correlation
    or an old curve, WARNING for a weak correlation or an aging curve,
    otherwise HEALTHY.  No calibration at all is MISSING.
    """
    cfg = config or HealthConfig()
    command = f"trade-calibration calibrate -m {market}"

    if calibration is None:
        return CalibrationStatus(
            market=market,
            status=HealthStatus.MISSING,
            recommendation=f"Run: {command}",
        )

    age_days = math.floor(calibration_age_days(calibration, now))
    r = calibration.correlation

    if r < cfg.recalibrate_below_correlation or age_days > cfg.recalibrate_after_days:
        status = HealthStatus.NEEDS_RECALIBRATION
        recommendation = f"Recalibrate now: {command}"
    elif r <= cfg.warn_below_correlation or age_days >= cfg.warn_after_days:
        status = HealthStatus.WARNING
        recommendation = f"Consider recalibrating soon: {command}"
    else:
        status = HealthStatus.HEALTHY
        recommendation = "Calibration is in good health"

    return CalibrationStatus(
        market=market,
        status=status,
        recommendation=recommendation,
        interpretation=_interpret(r, age_days, cfg),
        age_days=age_days,
        sample_size=calibration.sample_size,
        correlation=r,
        high_conf_win_rate=calibration.high_conf_win_rate,
        low_conf_win_rate=calibration.low_conf_win_rate,
    )
