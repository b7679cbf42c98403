"""Backtest engine: replay recommendations and assemble the full report.

:func:`backtest_recommendations` is the pure core: simulate, compare with
buy-and-hold, analyze and suggest.  :class:`BacktestEngine` adds the
recommendation-store lookup around it.
"""

from __future__ import annotations

import logging
from typing import Sequence

from trade_calibration.core.errors import InvalidInputError
from trade_calibration.core.interfaces import IRecommendationStore
from trade_calibration.core.models import Recommendation

from .results import BacktestResult, analyze, compute_performance
from .simulator import PositionSimulator
from .suggestions import generate_suggestions

logger = logging.getLogger(__name__)


def backtest_recommendations(
    recommendations: Sequence[Recommendation],
    simulator: PositionSimulator | None = None,
    capital_base: float = 0.0,
    threshold: float = 0.7,
) -> BacktestResult:
    """Run the complete backtest over an in-memory stream."""
    sim = simulator or PositionSimulator()
    trades = sim.simulate(recommendations)
    baseline = sim.buy_and_hold(recommendations, capital_base)

    market = recommendations[0].market
    performance, by_action, confidence, raw_confidence = analyze(
        trades, recommendations, capital_base, threshold=threshold,
    )
    buy_and_hold = compute_performance(baseline, capital_base)

    return BacktestResult(
        market=market,
        start=recommendations[0].timestamp,
        end=recommendations[-1].timestamp,
        total_recommendations=len(recommendations),
        capital_base=capital_base,
        recommended_strategy=performance,
        buy_and_hold_strategy=buy_and_hold,
        by_action=by_action,
        confidence_analysis=confidence,
        raw_confidence_analysis=raw_confidence,
        improvement_suggestions=generate_suggestions(
            performance, buy_and_hold, by_action, confidence, raw_confidence, market,
        ),
    )


class BacktestEngine:
    """Backtests the recommendations recorded for a market.

    The store is injected; the engine never opens connections itself.
    """

    def __init__(
        self,
        store: IRecommendationStore,
        simulator: PositionSimulator | None = None,
        high_confidence_threshold: float = 0.7,
    ) -> None:
        self._store = store
        self._simulator = simulator or PositionSimulator()
        self._threshold = high_confidence_threshold

    async def run(
        self,
        market: str | None = None,
        days: int | None = None,
        capital_base: float = 0.0,
    ) -> BacktestResult:
        """Backtest ``market`` over the last ``days`` days (all history if None).

        Raises:
            InvalidInputError: If no recommendations match.
        """
        recs = await self._store.fetch(market=market, days=days)
        if not recs:
            raise InvalidInputError("No recommendations found for the specified criteria")

        logger.info(
            "Starting backtest: %d recommendations, market=%s, capital_base=%.2f",
            len(recs),
            recs[0].market,
            capital_base,
        )
        result = backtest_recommendations(
            recs, self._simulator, capital_base, self._threshold,
        )
        logger.info("Backtest complete: %s", result.summary())
        return result
