"""Calibration training outcomes derived from a recommendation stream.

Directional outcomes come straight from the position simulator: one per
closed trade, scored against the confidence the trade was opened with.

Optionally, HOLD and CLOSE decisions are graded too by looking one
record ahead:

* a confident HOLD before a large move in either direction is a missed
  opportunity and counts as a loss;
* a confident CLOSE before the price kept moving in the position's
  favour was too early and counts as a loss, otherwise it counts as a
  win worth the drawdown it avoided.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from trade_calibration.backtester.simulator import PositionSimulator, transition
from trade_calibration.core.config import CalibrationConfig
from trade_calibration.core.enums import Action, Direction, PositionState
from trade_calibration.core.models import ClosedTrade, Recommendation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TradeOutcome:
    """Single calibration observation."""

    confidence: float
    is_winner: bool
    pnl_percent: float

    @classmethod
    def from_trade(cls, trade: ClosedTrade) -> TradeOutcome:
        """Score a trade by the raw confidence it was opened with."""
        confidence = trade.raw_confidence if trade.raw_confidence is not None else trade.confidence
        return cls(
            confidence=confidence,
            is_winner=trade.pnl_usd > 0,
            pnl_percent=trade.pnl_percent,
        )


def _score(rec: Recommendation) -> float:
    return rec.raw_confidence if rec.raw_confidence is not None else rec.confidence


def _pct_move(direction: Direction, entry: float, price: float) -> float:
    move = (price - entry) / entry * 100.0
    return move if direction is Direction.LONG else -move


def evaluate_decisions(
    recommendations: Sequence[Recommendation],
    config: CalibrationConfig | None = None,
) -> list[TradeOutcome]:
    """Grade HOLD and CLOSE decisions against the next record's price."""
    cfg = config or CalibrationConfig()
    outcomes: list[TradeOutcome] = []

    state = PositionState.FLAT
    entry_price = 0.0

    for current, nxt in zip(recommendations, recommendations[1:]):
        action = Action(current.action)
        confidence = _score(current)
        confident = confidence >= cfg.min_decision_confidence

        if action is Action.HOLD and confident:
            move = (nxt.price - current.price) / current.price * 100.0
            best = abs(move)
            if best > cfg.opportunity_threshold_pct:
                outcomes.append(TradeOutcome(
                    confidence=confidence,
                    is_winner=False,
                    pnl_percent=-best * cfg.hold_penalty_weight,
                ))

        elif action is Action.CLOSE and confident and state is not PositionState.FLAT:
            direction = state.direction
            at_close = _pct_move(direction, entry_price, current.price)
            if_held = _pct_move(direction, entry_price, nxt.price)
            missed = if_held - at_close
            if missed > cfg.close_too_early_threshold_pct:
                outcomes.append(TradeOutcome(
                    confidence=confidence,
                    is_winner=False,
                    pnl_percent=-abs(missed) * cfg.close_penalty_weight,
                ))
            else:
                outcomes.append(TradeOutcome(
                    confidence=confidence,
                    is_winner=True,
                    pnl_percent=abs(min(0.0, missed)),
                ))

        step = transition(state, action)
        if step.next_state is not state and step.next_state is not PositionState.FLAT:
            entry_price = current.price
        state = step.next_state

    return outcomes


def extract_outcomes(
    recommendations: Sequence[Recommendation],
    simulator: PositionSimulator | None = None,
    config: CalibrationConfig | None = None,
) -> list[TradeOutcome]:
    """Build the calibration training set for one market's stream."""
    cfg = config or CalibrationConfig()
    sim = simulator or PositionSimulator()

    outcomes = [TradeOutcome.from_trade(t) for t in sim.simulate(recommendations)]
    if cfg.evaluate_decisions:
        decisions = evaluate_decisions(recommendations, cfg)
        logger.debug(
            "Graded %d HOLD/CLOSE decisions alongside %d trades",
            len(decisions),
            len(outcomes),
        )
        outcomes.extend(decisions)
    return outcomes
