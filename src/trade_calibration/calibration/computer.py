"""Calibration computer: learns a monotonic raw → calibrated confidence map.

Usage::

    computer = CalibrationComputer(min_samples=10)
    calibration = computer.compute("BTC", window_days=60, outcomes=outcomes)
    calibration.points       # ((0.0, 0.4), (0.55, 0.4), (0.75, 0.62), (1.0, 0.62))
    calibration.correlation  # Pearson r(confidence, pnl_percent)

The same input always yields the same curve; the only time-dependent
field, ``computed_at``, comes from the injected clock.
"""

from __future__ import annotations

import logging
from typing import Sequence

from trade_calibration.core.clock import IClock, WallClock
from trade_calibration.core.config import CalibrationConfig
from trade_calibration.core.errors import InsufficientDataError
from trade_calibration.core.models import CalibrationData, ClosedTrade
from trade_calibration.core.stats import pearson, win_rate

from .isotonic import build_buckets, buckets_to_points, pool_adjacent_violators
from .outcomes import TradeOutcome

logger = logging.getLogger(__name__)


class CalibrationComputer:
    """Buckets outcomes by confidence and fits an isotonic curve.

    Parameters
    ----------
    n_buckets : int
        Number of equal-width confidence buckets over [0, 1].
    min_samples : int
        Minimum number of outcomes required; fewer raises
        :class:`InsufficientDataError`.
    high_confidence_threshold : float
        Split point for the high/low confidence win rates.
    clock : IClock
        Source of ``computed_at``.
    """

    def __init__(
        self,
        *,
        n_buckets: int = 10,
        min_samples: int = 10,
        high_confidence_threshold: float = 0.7,
        clock: IClock | None = None,
    ) -> None:
        self._n_buckets = max(2, n_buckets)
        self._min_samples = min_samples
        self._threshold = high_confidence_threshold
        self._clock = clock or WallClock()

    @classmethod
    def from_config(cls, config: CalibrationConfig, clock: IClock | None = None) -> CalibrationComputer:
        return cls(
            n_buckets=config.n_buckets,
            min_samples=config.min_samples,
            high_confidence_threshold=config.high_confidence_threshold,
            clock=clock,
        )

    def compute(
        self,
        market: str,
        window_days: int,
        outcomes: Sequence[TradeOutcome | ClosedTrade],
    ) -> CalibrationData:
        """Fit a calibration curve for ``market``.

        ``outcomes`` may mix :class:`TradeOutcome` records and closed
        trades; trades are scored by their raw confidence when present.
        """
        observations = [
            o if isinstance(o, TradeOutcome) else TradeOutcome.from_trade(o)
            for o in outcomes
        ]
        if len(observations) < self._min_samples:
            raise InsufficientDataError(found=len(observations), required=self._min_samples)

        buckets = build_buckets(
            ((o.confidence, o.is_winner) for o in observations),
            self._n_buckets,
        )
        pooled = pool_adjacent_violators(buckets)

        high = [o.is_winner for o in observations if o.confidence >= self._threshold]
        low = [o.is_winner for o in observations if o.confidence < self._threshold]

        calibration = CalibrationData(
            market=market,
            window_days=window_days,
            points=buckets_to_points(pooled),
            sample_size=len(observations),
            correlation=pearson(
                [o.confidence for o in observations],
                [o.pnl_percent for o in observations],
            ),
            high_conf_win_rate=win_rate(high),
            low_conf_win_rate=win_rate(low),
            computed_at=self._clock.now(),
        )

        logger.info(
            "Calibration for %s: %d samples, %d buckets pooled to %d, r=%.3f",
            market,
            calibration.sample_size,
            len(buckets),
            len(pooled),
            calibration.correlation,
        )
        return calibration
