"""Confidence calibration: isotonic mapping from raw to empirical confidence.

Key components
--------------
TradeOutcome          One win/loss observation keyed by raw confidence
CalibrationComputer   Buckets outcomes and fits a monotonic curve (PAVA)
apply_calibration     Piecewise-linear lookup of a raw score on a curve
evaluate_health       HEALTHY / WARNING / NEEDS_RECALIBRATION / MISSING
validate_calibration  Raw vs calibrated confidence on the same trades
CalibrationService    Store-backed workflow per market
"""

from .applier import apply_calibration, calibrated_or_raw, is_stale
from .computer import CalibrationComputer
from .health import CalibrationStatus, evaluate_health
from .isotonic import ConfidenceBucket, build_buckets, pool_adjacent_violators
from .outcomes import TradeOutcome, evaluate_decisions, extract_outcomes
from .service import CalibrationService
from .validation import ValidationReport, validate_calibration

__all__ = [
    "apply_calibration",
    "calibrated_or_raw",
    "is_stale",
    "CalibrationComputer",
    "CalibrationStatus",
    "evaluate_health",
    "ConfidenceBucket",
    "build_buckets",
    "pool_adjacent_violators",
    "TradeOutcome",
    "evaluate_decisions",
    "extract_outcomes",
    "CalibrationService",
    "ValidationReport",
    "validate_calibration",
]
