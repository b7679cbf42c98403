"""Retroactive validation of a calibration curve.

Re-scores every simulated trade's raw confidence through the curve and
compares how well raw and calibrated scores separate winners from
losers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from trade_calibration.backtester.results import ConfidenceAnalysis, compute_confidence_analysis
from trade_calibration.core.models import CalibrationData, ClosedTrade

from .applier import apply_calibration

MIN_CORRELATION_IMPROVEMENT = 0.10


@dataclass
class ValidationReport:
    """Raw vs calibrated confidence quality on the same trades."""

    market: str
    window_days: int
    sample_size: int
    raw: ConfidenceAnalysis
    calibrated: ConfidenceAnalysis
    issues: list[str] = field(default_factory=list)

    @property
    def raw_gap(self) -> float:
        return self.raw.high_confidence_win_rate - self.raw.low_confidence_win_rate

    @property
    def calibrated_gap(self) -> float:
        return self.calibrated.high_confidence_win_rate - self.calibrated.low_confidence_win_rate

    @property
    def correlation_improvement(self) -> float:
        return self.calibrated.correlation - self.raw.correlation

    @property
    def gap_improvement(self) -> float:
        return self.calibrated_gap - self.raw_gap

    @property
    def passes(self) -> bool:
        return not self.issues

    def to_dict(self) -> dict[str, Any]:
        return {
            "market": self.market,
            "window_days": self.window_days,
            "sample_size": self.sample_size,
            "raw": self.raw.to_dict(),
            "calibrated": self.calibrated.to_dict(),
            "correlation_improvement": self.correlation_improvement,
            "gap_improvement": self.gap_improvement,
            "passes": self.passes,
            "issues": list(self.issues),
        }


def rescore_trades(
    trades: Sequence[ClosedTrade],
    calibration: CalibrationData,
) -> tuple[list[ClosedTrade], list[ClosedTrade]]:
    """Return ``(raw_scored, calibrated_scored)`` copies of ``trades``.

    Each copy carries the score under test in ``confidence``.  Trades
    without a raw confidence fall back to their recorded confidence.
    """
    raw_scored: list[ClosedTrade] = []
    calibrated_scored: list[ClosedTrade] = []
    for trade in trades:
        raw = trade.raw_confidence if trade.raw_confidence is not None else trade.confidence
        raw_scored.append(trade.model_copy(update={"confidence": raw}))
        calibrated_scored.append(
            trade.model_copy(update={"confidence": apply_calibration(raw, calibration)})
        )
    return raw_scored, calibrated_scored


def validate_calibration(
    trades: Sequence[ClosedTrade],
    calibration: CalibrationData,
    threshold: float = 0.7,
) -> ValidationReport:
    """Compare raw and calibrated confidence on ``trades``."""
    raw_scored, calibrated_scored = rescore_trades(trades, calibration)
    report = ValidationReport(
        market=calibration.market,
        window_days=calibration.window_days,
        sample_size=calibration.sample_size,
        raw=compute_confidence_analysis(raw_scored, threshold),
        calibrated=compute_confidence_analysis(calibrated_scored, threshold),
    )

    if report.correlation_improvement < MIN_CORRELATION_IMPROVEMENT:
        report.issues.append(
            f"Correlation improvement ({report.correlation_improvement:.3f}) "
            f"is below target (≥{MIN_CORRELATION_IMPROVEMENT:.2f})"
        )
    if report.calibrated.high_confidence_win_rate <= report.calibrated.low_confidence_win_rate:
        report.issues.append("Calibrated high confidence win rate not exceeding low confidence")
    if report.gap_improvement < 0:
        report.issues.append("Gap decreased after calibration (should increase)")
    return report
