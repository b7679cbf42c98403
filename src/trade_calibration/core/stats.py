"""Small numeric helpers shared by the analyzers and calibration."""

from __future__ import annotations

from typing import Sequence

import numpy as np


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def pstdev(values: Sequence[float]) -> float:
    """Population standard deviation; 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.std(values))


def win_rate(outcomes: Sequence[bool]) -> float:
    """Fraction of ``True`` entries in [0, 1]; 0.0 when empty."""
    if len(outcomes) == 0:
        return 0.0
    return sum(1 for o in outcomes if o) / len(outcomes)


def pearson(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation coefficient of two equal-length series.

    Returns 0.0 when there are fewer than two points, the lengths differ,
    or either series has zero variance. The result is clipped to [-1, 1]
    to absorb floating point drift.
    """
    if len(x) != len(y) or len(x) < 2:
        return 0.0

    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    if np.ptp(xs) == 0.0 or np.ptp(ys) == 0.0:
        return 0.0
    dx = xs - xs.mean()
    dy = ys - ys.mean()

    denom = float(np.sqrt(np.sum(dx * dx) * np.sum(dy * dy)))
    if denom == 0.0:
        return 0.0
    return float(np.clip(np.sum(dx * dy) / denom, -1.0, 1.0))
