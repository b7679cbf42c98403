"""Rule-based improvement suggestions for a backtest.

Rules are evaluated in a fixed priority order and the output is capped,
so the most important findings always survive truncation.
"""

from __future__ import annotations

from trade_calibration.core.stats import mean, pstdev

from .results import ActionBreakdown, ConfidenceAnalysis, StrategyPerformance

MAX_SUGGESTIONS = 6

CALIBRATION_DELTA = 0.1  # Correlation change that counts as better/worse
CALIBRATION_NEUTRAL_DELTA = 0.05  # Below this, calibration made no difference
POOR_RAW_CORRELATION = 0.3
SCALING_CORRELATION = 0.3
DIRECTIONAL_BIAS_POINTS = 10.0
BUY_AND_HOLD_GAP_PCT = 20.0
MIN_WIN_RATE = 50.0
SIZE_DISPERSION_RATIO = 0.5


def _calibration_rules(
    confidence: ConfidenceAnalysis,
    raw_confidence: ConfidenceAnalysis | None,
    market: str,
) -> list[str]:
    if raw_confidence is None:
        # Legacy records carry no raw score
        if confidence.high_confidence_win_rate < confidence.low_confidence_win_rate:
            return [
                "High-confidence signals underperform low-confidence. "
                "Consider running confidence calibration."
            ]
        return []

    out: list[str] = []
    delta = confidence.correlation - raw_confidence.correlation
    if delta > CALIBRATION_DELTA:
        out.append(
            f"Calibration improved correlation by {delta:.2f} "
            f"({raw_confidence.correlation:.2f} → {confidence.correlation:.2f}). Good job!"
        )
    elif delta < -CALIBRATION_DELTA:
        out.append(
            f"Calibration degraded correlation by {abs(delta):.2f}. "
            "Consider recomputing calibration with more recent data."
        )

    if raw_confidence.correlation < POOR_RAW_CORRELATION and abs(delta) < CALIBRATION_NEUTRAL_DELTA:
        out.append(
            f"Raw confidence correlation is low (r={raw_confidence.correlation:.2f}). "
            f"Run 'trade-calibration calibrate -m {market}' to improve."
        )
    return out


def _scaling_rules(confidence: ConfidenceAnalysis) -> list[str]:
    r = confidence.correlation
    if r > SCALING_CORRELATION:
        return [f"Scale position size with confidence (r={r:.2f} shows predictive value)."]
    if r < -SCALING_CORRELATION:
        return [f"Negative confidence correlation (r={r:.2f}); consider inverting confidence weighting."]
    return []


def _bias_rules(by_action: ActionBreakdown) -> list[str]:
    long_wr = by_action.long.win_rate
    short_wr = by_action.short.win_rate
    if long_wr - short_wr > DIRECTIONAL_BIAS_POINTS:
        return [
            f"Long bias detected: long win rate {long_wr:.1f}% vs short {short_wr:.1f}%. "
            "Filter weak short signals."
        ]
    if short_wr - long_wr > DIRECTIONAL_BIAS_POINTS:
        return [
            f"Short bias detected: short win rate {short_wr:.1f}% vs long {long_wr:.1f}%. "
            "Filter weak long signals."
        ]
    return []


def _buy_and_hold_rules(
    recommended: StrategyPerformance,
    buy_and_hold: StrategyPerformance,
) -> list[str]:
    if buy_and_hold.total_pnl_usd <= 0:
        return []
    gap = (buy_and_hold.total_pnl_usd - recommended.total_pnl_usd) / buy_and_hold.total_pnl_usd * 100.0
    if gap > BUY_AND_HOLD_GAP_PCT:
        return [f"Strategy underperforming Buy & Hold by {gap:.1f}%. Consider holding winners longer."]
    return []


def _win_rate_rules(recommended: StrategyPerformance) -> list[str]:
    if recommended.win_rate < MIN_WIN_RATE:
        return [
            f"Win rate below 50% ({recommended.win_rate:.1f}%); "
            "consider raising confidence threshold or filtering signals."
        ]
    return []


def _sizing_rules(recommended: StrategyPerformance) -> list[str]:
    sizes = [t.size_usd for t in recommended.trades]
    if sizes and pstdev(sizes) > mean(sizes) * SIZE_DISPERSION_RATIO:
        return ["High variance in position sizes; consider normalizing or using volatility-based sizing."]
    return []


def generate_suggestions(
    recommended: StrategyPerformance,
    buy_and_hold: StrategyPerformance,
    by_action: ActionBreakdown,
    confidence: ConfidenceAnalysis,
    raw_confidence: ConfidenceAnalysis | None = None,
    market: str = "MARKET",
) -> list[str]:
    """Evaluate every rule in priority order and keep the first six hits."""
    suggestions: list[str] = []
    suggestions += _calibration_rules(confidence, raw_confidence, market)
    suggestions += _scaling_rules(confidence)
    suggestions += _bias_rules(by_action)
    suggestions += _buy_and_hold_rules(recommended, buy_and_hold)
    suggestions += _win_rate_rules(recommended)
    suggestions += _sizing_rules(recommended)
    return suggestions[:MAX_SUGGESTIONS]
