"""Backtest result computation and metrics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Sequence

import numpy as np

from trade_calibration.core.enums import Action, Direction
from trade_calibration.core.models import ClosedTrade, Recommendation
from trade_calibration.core.stats import mean, pearson

HIGH_CONFIDENCE_THRESHOLD = 0.7


@dataclass
class StrategyPerformance:
    """Aggregate metrics for one simulated strategy."""

    total_pnl_usd: float = 0.0
    total_return_percent: float = 0.0
    win_rate: float = 0.0  # Percent of trades with pnl_usd > 0
    avg_trade_return_usd: float = 0.0
    avg_trade_return_percent: float = 0.0
    num_trades: int = 0
    trades: list[ClosedTrade] = field(default_factory=list)

    def to_dict(self, include_trades: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "total_pnl_usd": self.total_pnl_usd,
            "total_return_percent": self.total_return_percent,
            "win_rate": self.win_rate,
            "avg_trade_return_usd": self.avg_trade_return_usd,
            "avg_trade_return_percent": self.avg_trade_return_percent,
            "num_trades": self.num_trades,
        }
        if include_trades:
            data["trades"] = [t.model_dump(mode="json") for t in self.trades]
        return data


@dataclass
class ActionStats:
    """Recommendation count and trade quality for one action."""

    count: int = 0
    win_rate: float = 0.0  # Percent
    avg_pnl: float = 0.0


@dataclass
class ActionBreakdown:
    long: ActionStats = field(default_factory=ActionStats)
    short: ActionStats = field(default_factory=ActionStats)
    hold: ActionStats = field(default_factory=ActionStats)
    close: ActionStats = field(default_factory=ActionStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            name: {"count": s.count, "win_rate": s.win_rate, "avg_pnl": s.avg_pnl}
            for name, s in (
                ("long", self.long),
                ("short", self.short),
                ("hold", self.hold),
                ("close", self.close),
            )
        }


@dataclass
class ConfidenceAnalysis:
    """How well a confidence series separates winners from losers."""

    high_confidence_win_rate: float = 0.0  # Percent, confidence >= threshold
    low_confidence_win_rate: float = 0.0  # Percent, confidence < threshold
    correlation: float = 0.0  # Pearson r(confidence, pnl_percent)

    def to_dict(self) -> dict[str, Any]:
        return {
            "high_confidence_win_rate": self.high_confidence_win_rate,
            "low_confidence_win_rate": self.low_confidence_win_rate,
            "correlation": self.correlation,
        }


@dataclass
class BacktestResult:
    """Complete backtest analysis for a single market."""

    market: str = ""
    start: datetime | None = None
    end: datetime | None = None
    total_recommendations: int = 0
    capital_base: float = 0.0

    recommended_strategy: StrategyPerformance = field(default_factory=StrategyPerformance)
    buy_and_hold_strategy: StrategyPerformance = field(default_factory=StrategyPerformance)
    by_action: ActionBreakdown = field(default_factory=ActionBreakdown)

    confidence_analysis: ConfidenceAnalysis = field(default_factory=ConfidenceAnalysis)
    raw_confidence_analysis: ConfidenceAnalysis | None = None

    improvement_suggestions: list[str] = field(default_factory=list)

    def summary(self) -> dict[str, Any]:
        """Return summary dict for logging."""
        rec = self.recommended_strategy
        return {
            "market": self.market,
            "recommendations": self.total_recommendations,
            "trades": rec.num_trades,
            "pnl": f"{rec.total_pnl_usd:.2f}",
            "return": f"{rec.total_return_percent:.2f}%",
            "win_rate": f"{rec.win_rate:.1f}%",
            "correlation": f"{self.confidence_analysis.correlation:.3f}",
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "market": self.market,
            "date_range": {
                "start": self.start.isoformat() if self.start else None,
                "end": self.end.isoformat() if self.end else None,
            },
            "total_recommendations": self.total_recommendations,
            "capital_base": self.capital_base,
            "recommended_strategy": self.recommended_strategy.to_dict(),
            "buy_and_hold_strategy": self.buy_and_hold_strategy.to_dict(),
            "by_action": self.by_action.to_dict(),
            "confidence_analysis": self.confidence_analysis.to_dict(),
            "raw_confidence_analysis": (
                self.raw_confidence_analysis.to_dict()
                if self.raw_confidence_analysis is not None
                else None
            ),
            "improvement_suggestions": list(self.improvement_suggestions),
        }


def compute_performance(
    trades: Sequence[ClosedTrade],
    capital_base: float = 0.0,
) -> StrategyPerformance:
    """Compute strategy metrics from closed trades.

    The return denominator is ``capital_base`` when positive.  Otherwise
    it falls back to the largest single trade size, which assumes capital
    is reused sequentially rather than allocated across positions.
    """
    if not trades:
        return StrategyPerformance()

    pnl = np.array([t.pnl_usd for t in trades], dtype=float)
    pnl_pct = np.array([t.pnl_percent for t in trades], dtype=float)

    denominator = capital_base if capital_base > 0 else max(
        max(t.size_usd for t in trades), 1.0
    )
    total_pnl = float(np.sum(pnl))

    return StrategyPerformance(
        total_pnl_usd=total_pnl,
        total_return_percent=total_pnl / denominator * 100.0,
        win_rate=float(np.sum(pnl > 0)) / len(trades) * 100.0,
        avg_trade_return_usd=float(np.mean(pnl)),
        avg_trade_return_percent=float(np.mean(pnl_pct)),
        num_trades=len(trades),
        trades=list(trades),
    )


def _action_stats(trades: Sequence[ClosedTrade], count: int) -> ActionStats:
    if not trades:
        return ActionStats(count=count)
    wins = sum(1 for t in trades if t.pnl_usd > 0)
    return ActionStats(
        count=count,
        win_rate=wins / len(trades) * 100.0,
        avg_pnl=mean([t.pnl_usd for t in trades]),
    )


def compute_action_breakdown(
    recommendations: Sequence[Recommendation],
    trades: Sequence[ClosedTrade],
) -> ActionBreakdown:
    """Count recommendations per action and score directional trades.

    Trades are attributed to the action that opened them.  HOLD and CLOSE
    never produce PnL directly, so they only carry a count.
    """
    counts = {action: 0 for action in Action}
    for rec in recommendations:
        counts[Action(rec.action)] += 1

    longs = [t for t in trades if t.direction is Direction.LONG]
    shorts = [t for t in trades if t.direction is Direction.SHORT]

    return ActionBreakdown(
        long=_action_stats(longs, counts[Action.LONG]),
        short=_action_stats(shorts, counts[Action.SHORT]),
        hold=ActionStats(count=counts[Action.HOLD]),
        close=ActionStats(count=counts[Action.CLOSE]),
    )


def _split_and_correlate(
    pairs: list[tuple[float, ClosedTrade]],
    threshold: float,
) -> ConfidenceAnalysis:
    if not pairs:
        return ConfidenceAnalysis()

    def _rate(group: list[ClosedTrade]) -> float:
        if not group:
            return 0.0
        return sum(1 for t in group if t.pnl_usd > 0) / len(group) * 100.0

    return ConfidenceAnalysis(
        high_confidence_win_rate=_rate([t for c, t in pairs if c >= threshold]),
        low_confidence_win_rate=_rate([t for c, t in pairs if c < threshold]),
        correlation=pearson([c for c, _ in pairs], [t.pnl_percent for _, t in pairs]),
    )


def compute_confidence_analysis(
    trades: Sequence[ClosedTrade],
    threshold: float = HIGH_CONFIDENCE_THRESHOLD,
) -> ConfidenceAnalysis:
    """Split trades at ``threshold`` and correlate confidence with return."""
    return _split_and_correlate([(t.confidence, t) for t in trades], threshold)


def compute_raw_confidence_analysis(
    trades: Sequence[ClosedTrade],
    threshold: float = HIGH_CONFIDENCE_THRESHOLD,
) -> ConfidenceAnalysis | None:
    """Same as :func:`compute_confidence_analysis` on pre-calibration scores.

    Only trades carrying a raw confidence are analyzed; ``None`` when
    there are none.
    """
    pairs = [(t.raw_confidence, t) for t in trades if t.raw_confidence is not None]
    if not pairs:
        return None
    return _split_and_correlate(pairs, threshold)


def analyze(
    trades: Sequence[ClosedTrade],
    recommendations: Sequence[Recommendation],
    capital_base: float = 0.0,
    *,
    threshold: float = HIGH_CONFIDENCE_THRESHOLD,
) -> tuple[StrategyPerformance, ActionBreakdown, ConfidenceAnalysis, ConfidenceAnalysis | None]:
    """Run every analyzer over one simulation's output."""
    return (
        compute_performance(trades, capital_base),
        compute_action_breakdown(recommendations, trades),
        compute_confidence_analysis(trades, threshold),
        compute_raw_confidence_analysis(trades, threshold),
    )
