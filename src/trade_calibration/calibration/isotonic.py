"""Confidence bucketing and pool-adjacent-violators (isotonic) regression.

Outcomes are grouped into fixed-width confidence buckets; PAVA then
merges neighbouring buckets until win rate never decreases as confidence
increases.  The pooled buckets become the knots of the calibration curve.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterable, Sequence

from trade_calibration.core.models import CalibrationPoint

DEFAULT_N_BUCKETS = 10


@dataclass(frozen=True)
class ConfidenceBucket:
    """A confidence range with its observed wins.

    ``wins`` is kept instead of the rate so that pooling two buckets is
    an exact count-weighted average.
    """

    range_low: float
    range_high: float
    sample_count: int
    wins: int

    @property
    def win_rate(self) -> float:
        if self.sample_count == 0:
            return 0.0
        return self.wins / self.sample_count

    @property
    def midpoint(self) -> float:
        return (self.range_low + self.range_high) / 2

    def pool(self, other: ConfidenceBucket) -> ConfidenceBucket:
        """Merge with the bucket immediately above this one."""
        return ConfidenceBucket(
            range_low=self.range_low,
            range_high=other.range_high,
            sample_count=self.sample_count + other.sample_count,
            wins=self.wins + other.wins,
        )


def bucket_index(confidence: float, n_buckets: int = DEFAULT_N_BUCKETS) -> int:
    """Index of the ``[i/n, (i+1)/n)`` bucket holding ``confidence``.

    The last bucket is closed at 1.0; values outside [0, 1] are clamped.
    """
    edges = [i / n_buckets for i in range(n_buckets)]
    idx = bisect_right(edges, confidence) - 1
    return min(max(idx, 0), n_buckets - 1)


def build_buckets(
    observations: Iterable[tuple[float, bool]],
    n_buckets: int = DEFAULT_N_BUCKETS,
) -> list[ConfidenceBucket]:
    """Group ``(confidence, won)`` pairs into non-empty buckets.

    Empty buckets are dropped rather than reported with a zero win rate,
    so they cannot drag the curve down.
    """
    counts = [0] * n_buckets
    wins = [0] * n_buckets
    for confidence, won in observations:
        idx = bucket_index(confidence, n_buckets)
        counts[idx] += 1
        if won:
            wins[idx] += 1

    return [
        ConfidenceBucket(
            range_low=i / n_buckets,
            range_high=(i + 1) / n_buckets,
            sample_count=counts[i],
            wins=wins[i],
        )
        for i in range(n_buckets)
        if counts[i] > 0
    ]


def is_monotonic(buckets: Sequence[ConfidenceBucket]) -> bool:
    return all(a.win_rate <= b.win_rate for a, b in zip(buckets, buckets[1:]))


def pool_adjacent_violators(buckets: Sequence[ConfidenceBucket]) -> list[ConfidenceBucket]:
    """Merge neighbouring buckets until win rate is non-decreasing.

    Buckets must be in ascending confidence order.  After each merge the
    new bucket is compared with its left neighbour again, which is the
    earliest point the merge can have broken.  Already monotone input is
    returned unchanged.
    """
    pooled: list[ConfidenceBucket] = []
    for bucket in buckets:
        pooled.append(bucket)
        while len(pooled) >= 2 and pooled[-2].win_rate > pooled[-1].win_rate:
            right = pooled.pop()
            pooled[-1] = pooled[-1].pool(right)
    return pooled


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def buckets_to_points(buckets: Sequence[ConfidenceBucket]) -> tuple[CalibrationPoint, ...]:
    """Turn pooled buckets into a piecewise-linear calibration curve.

    One knot per bucket at the middle of its range, plus flat anchors at
    raw 0.0 and 1.0 carrying the first and last pooled win rate.  Nothing
    is extrapolated beyond observed data.
    """
    if not buckets:
        return ()

    points = [CalibrationPoint(raw_confidence=0.0, calibrated_confidence=_clamp(buckets[0].win_rate))]
    for bucket in buckets:
        points.append(
            CalibrationPoint(
                raw_confidence=bucket.midpoint,
                calibrated_confidence=_clamp(bucket.win_rate),
            )
        )
    points.append(CalibrationPoint(raw_confidence=1.0, calibrated_confidence=_clamp(buckets[-1].win_rate)))
    return tuple(points)
