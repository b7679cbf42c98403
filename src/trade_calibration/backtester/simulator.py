"""Position simulator: replays recommendations through a flat/long/short
state machine and emits realized round-trips.

Each call to :meth:`PositionSimulator.simulate` owns its own position
state and trade list, so independent markets can be simulated in
parallel without coordination.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple, Sequence

from trade_calibration.core.enums import Action, Direction, PositionState
from trade_calibration.core.errors import InvalidInputError
from trade_calibration.core.models import ClosedTrade, Recommendation

logger = logging.getLogger(__name__)


class Transition(NamedTuple):
    """Outcome of feeding one action to one position state."""

    closes: bool  # Current position is closed and a trade emitted
    next_state: PositionState


# Total over PositionState x Action.  A transition that lands on a
# different non-flat state opens a new position at the record's price.
_TRANSITIONS: dict[tuple[PositionState, Action], Transition] = {
    (PositionState.FLAT, Action.LONG): Transition(False, PositionState.LONG),
    (PositionState.FLAT, Action.SHORT): Transition(False, PositionState.SHORT),
    (PositionState.FLAT, Action.HOLD): Transition(False, PositionState.FLAT),
    (PositionState.FLAT, Action.CLOSE): Transition(False, PositionState.FLAT),
    (PositionState.LONG, Action.LONG): Transition(False, PositionState.LONG),
    (PositionState.LONG, Action.SHORT): Transition(True, PositionState.SHORT),
    (PositionState.LONG, Action.HOLD): Transition(False, PositionState.LONG),
    (PositionState.LONG, Action.CLOSE): Transition(True, PositionState.FLAT),
    (PositionState.SHORT, Action.LONG): Transition(True, PositionState.LONG),
    (PositionState.SHORT, Action.SHORT): Transition(False, PositionState.SHORT),
    (PositionState.SHORT, Action.HOLD): Transition(False, PositionState.SHORT),
    (PositionState.SHORT, Action.CLOSE): Transition(True, PositionState.FLAT),
}


def transition(state: PositionState, action: Action) -> Transition:
    """Look up the transition for ``(state, action)``."""
    return _TRANSITIONS[(state, action)]


@dataclass
class _OpenPosition:
    """The single position held during a simulation run."""

    direction: Direction
    entry_price: float
    entry_time: datetime
    size_usd: float
    confidence: float
    raw_confidence: float | None = None


def compute_pnl(
    direction: Direction,
    entry_price: float,
    exit_price: float,
    size_usd: float,
) -> tuple[float, float]:
    """Return ``(pnl_usd, pnl_percent)`` for a round-trip.

    Long and short are mirror images: the same prices and size yield
    negated PnL.
    """
    move = exit_price / entry_price - 1.0
    if direction is Direction.SHORT:
        move = -move
    return size_usd * move, move * 100.0


def validate_stream(recommendations: Sequence[Recommendation]) -> None:
    """Reject empty streams and records with non-finite numbers.

    Records built through pydantic validation already satisfy this; the
    check guards records built with ``model_construct``.
    """
    if not recommendations:
        raise InvalidInputError("Recommendation stream is empty")

    for i, rec in enumerate(recommendations):
        try:
            Action(rec.action)
        except ValueError:
            raise InvalidInputError(
                f"Unrecognized action {rec.action!r} at index {i}"
            ) from None
        if rec.timestamp.tzinfo is None:
            raise InvalidInputError(f"Timestamp without timezone at index {i}")
        if i > 0 and rec.timestamp < recommendations[i - 1].timestamp:
            raise InvalidInputError(
                f"Recommendations out of order at index {i}"
            )
        if not math.isfinite(rec.price) or rec.price <= 0:
            raise InvalidInputError(f"Invalid price {rec.price!r} at index {i}")
        if rec.size_usd is not None and (
            not math.isfinite(rec.size_usd) or rec.size_usd <= 0
        ):
            raise InvalidInputError(
                f"Invalid size_usd {rec.size_usd!r} at index {i}"
            )


class PositionSimulator:
    """Replays an ordered recommendation stream for a single market.

    Parameters
    ----------
    default_size_usd : float
        Position size used when a recommendation carries no ``size_usd``.
    """

    def __init__(self, default_size_usd: float = 1000.0) -> None:
        if not default_size_usd > 0:
            raise InvalidInputError("default_size_usd must be positive")
        self._default_size_usd = default_size_usd

    @property
    def default_size_usd(self) -> float:
        return self._default_size_usd

    def simulate(self, recommendations: Sequence[Recommendation]) -> list[ClosedTrade]:
        """Replay ``recommendations`` and return the closed trades in order.

        Any position still open after the last record is closed at that
        record's price and time.
        """
        validate_stream(recommendations)

        market = recommendations[0].market
        state = PositionState.FLAT
        position: _OpenPosition | None = None
        trades: list[ClosedTrade] = []

        for rec in recommendations:
            step = transition(state, Action(rec.action))

            if step.closes and position is not None:
                trades.append(self._close(position, rec.price, rec.timestamp, market))
                position = None

            if step.next_state is not state and step.next_state is not PositionState.FLAT:
                position = _OpenPosition(
                    direction=step.next_state.direction,
                    entry_price=rec.price,
                    entry_time=rec.timestamp,
                    size_usd=rec.size_usd if rec.size_usd is not None else self._default_size_usd,
                    confidence=rec.confidence,
                    raw_confidence=rec.raw_confidence,
                )

            state = step.next_state

        if position is not None:
            last = recommendations[-1]
            trades.append(self._close(position, last.price, last.timestamp, market))

        logger.debug(
            "Simulated %d recommendations for %s -> %d closed trades",
            len(recommendations),
            market,
            len(trades),
        )
        return trades

    def buy_and_hold(
        self,
        recommendations: Sequence[Recommendation],
        capital_base: float = 0.0,
    ) -> list[ClosedTrade]:
        """Baseline: one long from the first record's price to the last's.

        Sized at ``capital_base`` when positive, otherwise the default
        size.  Fewer than two records produce no trade.
        """
        if len(recommendations) < 2:
            return []

        first, last = recommendations[0], recommendations[-1]
        size = capital_base if capital_base > 0 else self._default_size_usd
        position = _OpenPosition(
            direction=Direction.LONG,
            entry_price=first.price,
            entry_time=first.timestamp,
            size_usd=size,
            confidence=1.0,
        )
        return [self._close(position, last.price, last.timestamp, first.market)]

    @staticmethod
    def _close(
        position: _OpenPosition,
        exit_price: float,
        exit_time: datetime,
        market: str,
    ) -> ClosedTrade:
        pnl_usd, pnl_percent = compute_pnl(
            position.direction, position.entry_price, exit_price, position.size_usd,
        )
        return ClosedTrade(
            market=market,
            entry_time=position.entry_time,
            exit_time=exit_time,
            direction=position.direction,
            entry_price=position.entry_price,
            exit_price=exit_price,
            size_usd=position.size_usd,
            confidence=position.confidence,
            raw_confidence=position.raw_confidence,
            pnl_usd=pnl_usd,
            pnl_percent=pnl_percent,
        )
