"""Calibration service: computes, stores and serves calibrations per market.

Both stores are injected at construction.  The service only sequences
calls: every computation is delegated to the pure calibration modules.
"""

from __future__ import annotations

import logging

from trade_calibration.backtester.simulator import PositionSimulator
from trade_calibration.core.clock import IClock, WallClock
from trade_calibration.core.config import CalibrationConfig, HealthConfig
from trade_calibration.core.errors import InsufficientDataError
from trade_calibration.core.interfaces import ICalibrationStore, IRecommendationStore
from trade_calibration.core.models import CalibrationData, Recommendation

from .applier import apply_calibration, calibrated_or_raw, is_stale
from .computer import CalibrationComputer
from .health import CalibrationStatus, evaluate_health
from .outcomes import extract_outcomes
from .validation import ValidationReport, validate_calibration

logger = logging.getLogger(__name__)


class CalibrationService:
    """Market-level calibration workflow over injected stores."""

    def __init__(
        self,
        recommendations: IRecommendationStore,
        calibrations: ICalibrationStore,
        *,
        config: CalibrationConfig | None = None,
        health_config: HealthConfig | None = None,
        simulator: PositionSimulator | None = None,
        clock: IClock | None = None,
    ) -> None:
        self._recommendations = recommendations
        self._calibrations = calibrations
        self._config = config or CalibrationConfig()
        self._health_config = health_config or HealthConfig()
        self._simulator = simulator or PositionSimulator()
        self._clock = clock or WallClock()
        self._computer = CalibrationComputer.from_config(self._config, clock=self._clock)

    async def _fetch_window(self, market: str, window_days: int) -> list[Recommendation]:
        recs = await self._recommendations.fetch(
            market=market, days=window_days, now=self._clock.now(),
        )
        if not recs:
            raise InsufficientDataError(found=0, required=self._config.min_samples)
        return recs

    async def compute_calibration(self, market: str, window_days: int | None = None) -> CalibrationData:
        """Fit a calibration from the last ``window_days`` of ``market``.

        Raises:
            InsufficientDataError: If the window yields too few outcomes.
        """
        days = self._config.default_window_days if window_days is None else window_days
        recs = await self._fetch_window(market, days)
        outcomes = extract_outcomes(recs, self._simulator, self._config)
        return self._computer.compute(market, days, outcomes)

    async def save(self, calibration: CalibrationData) -> int:
        record_id = await self._calibrations.save(calibration)
        logger.info("Saved calibration %s for %s", record_id, calibration.market)
        return record_id

    async def latest(self, market: str) -> CalibrationData | None:
        return await self._calibrations.latest(market)

    async def is_stale(self, market: str, max_age_days: float | None = None) -> bool:
        max_age = self._config.max_age_days if max_age_days is None else max_age_days
        return is_stale(await self.latest(market), self._clock.now(), max_age)

    def apply(self, raw_confidence: float, calibration: CalibrationData) -> float:
        return apply_calibration(raw_confidence, calibration)

    async def calibrate_score(self, market: str, raw_confidence: float) -> float:
        """Score with the latest fresh calibration, or raw if there is none."""
        return calibrated_or_raw(
            raw_confidence,
            await self.latest(market),
            self._clock.now(),
            self._config.max_age_days,
        )

    async def status(self, markets: list[str] | None = None) -> list[CalibrationStatus]:
        now = self._clock.now()
        return [
            evaluate_health(m, await self.latest(m), now, self._health_config)
            for m in (markets or self._health_config.default_markets)
        ]

    async def validate(self, market: str, window_days: int | None = None) -> ValidationReport:
        """Fit a calibration and check it against the same window's trades."""
        days = self._config.default_window_days if window_days is None else window_days
        recs = await self._fetch_window(market, days)
        outcomes = extract_outcomes(recs, self._simulator, self._config)
        calibration = self._computer.compute(market, days, outcomes)
        trades = self._simulator.simulate(recs)
        return validate_calibration(
            trades, calibration, self._config.high_confidence_threshold,
        )
