"""Plain-text rendering for CLI output.

Each ``format_*`` function returns a string; nothing here prints or logs.
"""

from __future__ import annotations

from trade_calibration.backtester.results import BacktestResult, ConfidenceAnalysis, StrategyPerformance
from trade_calibration.calibration.applier import apply_calibration
from trade_calibration.calibration.health import CalibrationStatus
from trade_calibration.calibration.validation import ValidationReport
from trade_calibration.core.enums import HealthStatus
from trade_calibration.core.models import CalibrationData

_RULE = "=" * 70

_STATUS_LABELS = {
    HealthStatus.HEALTHY: "[OK]   HEALTHY",
    HealthStatus.WARNING: "[WARN] WARNING",
    HealthStatus.NEEDS_RECALIBRATION: "[FAIL] NEEDS RECALIBRATION",
    HealthStatus.MISSING: "[--]   NO CALIBRATION",
}


def _header(title: str) -> list[str]:
    return ["", _RULE, title, _RULE]


def _strategy_lines(name: str, perf: StrategyPerformance) -> list[str]:
    return [
        f"\n--- {name} ---",
        f"  Total PnL:        ${perf.total_pnl_usd:,.2f}",
        f"  Total Return:     {perf.total_return_percent:+.2f}%",
        f"  Trades:           {perf.num_trades}",
        f"  Win Rate:         {perf.win_rate:.1f}%",
        f"  Avg Trade:        ${perf.avg_trade_return_usd:,.2f} ({perf.avg_trade_return_percent:+.2f}%)",
    ]


def _confidence_lines(name: str, analysis: ConfidenceAnalysis) -> list[str]:
    gap = analysis.high_confidence_win_rate - analysis.low_confidence_win_rate
    return [
        f"\n--- {name} ---",
        f"  High Conf Win Rate: {analysis.high_confidence_win_rate:.1f}%",
        f"  Low Conf Win Rate:  {analysis.low_confidence_win_rate:.1f}%",
        f"  Gap:                {gap:+.1f}%",
        f"  Correlation:        {analysis.correlation:+.3f}",
    ]


def format_backtest(result: BacktestResult) -> str:
    """Human-readable backtest report."""
    start = result.start.isoformat() if result.start else "?"
    end = result.end.isoformat() if result.end else "?"
    lines = _header(f"BACKTEST: {result.market}")
    lines += [
        f"  Period:           {start} -> {end}",
        f"  Recommendations:  {result.total_recommendations}",
    ]
    if result.capital_base > 0:
        lines.append(f"  Capital Base:     ${result.capital_base:,.2f}")

    lines += _strategy_lines("Recommended Strategy", result.recommended_strategy)
    lines += _strategy_lines("Buy & Hold", result.buy_and_hold_strategy)

    lines.append("\n--- By Action ---")
    lines.append(f"  {'Action':8s} {'Count':>6s} {'Win %':>7s} {'Avg PnL':>10s}")
    for action, stats in result.by_action.to_dict().items():
        lines.append(
            f"  {action:8s} {stats['count']:>6d} {stats['win_rate']:>6.1f}% {stats['avg_pnl']:>10.2f}"
        )

    lines += _confidence_lines("Confidence Analysis", result.confidence_analysis)
    if result.raw_confidence_analysis is not None:
        lines += _confidence_lines("Raw Confidence Analysis", result.raw_confidence_analysis)

    if result.improvement_suggestions:
        lines.append("\n--- Suggestions ---")
        lines += [f"  {i}. {s}" for i, s in enumerate(result.improvement_suggestions, 1)]
    return "\n".join(lines)


def format_curve(calibration: CalibrationData, width: int = 40, steps: int = 10) -> str:
    """ASCII bar chart of calibrated confidence at evenly spaced raw scores."""
    lines = [f"  {'Raw':>5s}  {'Calibrated':>10s}"]
    for i in range(steps + 1):
        raw = i / steps
        value = apply_calibration(raw, calibration)
        bar = "#" * round(value * width)
        lines.append(f"  {raw:5.2f}  {value:10.3f}  |{bar}")
    return "\n".join(lines)


def format_calibration(calibration: CalibrationData, saved_id: int | None = None) -> str:
    """Calibration summary plus its curve."""
    lines = _header(f"CALIBRATION: {calibration.market}")
    lines += [
        f"  Window:             {calibration.window_days} days",
        f"  Sample Size:        {calibration.sample_size}",
        f"  Correlation:        {calibration.correlation:+.3f}",
        f"  High Conf Win Rate: {calibration.high_conf_win_rate * 100:.1f}%",
        f"  Low Conf Win Rate:  {calibration.low_conf_win_rate * 100:.1f}%",
        f"  Gap:                {calibration.win_rate_gap * 100:+.1f}%",
        f"  Computed At:        {calibration.computed_at.isoformat()}",
        "\n--- Curve ---",
        format_curve(calibration),
    ]
    if saved_id is None:
        lines.append("\n  Dry run: calibration not saved.")
    else:
        lines.append(f"\n  Saved calibration #{saved_id}.")
    return "\n".join(lines)


def format_status(statuses: list[CalibrationStatus]) -> str:
    """Health report for one or more markets."""
    lines = _header("CALIBRATION STATUS")
    for s in statuses:
        lines.append(f"\n{s.market}: {_STATUS_LABELS[s.status]}")
        if s.has_calibration:
            lines += [
                f"  Age:                {s.age_days} days",
                f"  Sample Size:        {s.sample_size}",
                f"  Correlation:        {s.correlation:+.3f}",
                f"  Win Rate Gap:       {(s.win_rate_gap or 0.0) * 100:+.1f}%",
                f"  Assessment:         {s.interpretation}",
            ]
        lines.append(f"  -> {s.recommendation}")
    return "\n".join(lines)


def format_validation(report: ValidationReport) -> str:
    """Raw vs calibrated comparison with pass/fail verdict."""
    lines = _header(f"CALIBRATION VALIDATION: {report.market}")
    lines += [
        f"  Window:       {report.window_days} days",
        f"  Sample Size:  {report.sample_size}",
    ]
    lines += _confidence_lines("Raw", report.raw)
    lines += _confidence_lines("Calibrated", report.calibrated)
    lines += [
        "\n--- Improvement ---",
        f"  Correlation:  {report.correlation_improvement:+.3f}",
        f"  Gap:          {report.gap_improvement:+.1f}%",
        "",
    ]
    if report.passes:
        lines.append("  PASSED: calibration improves confidence quality.")
    else:
        lines.append("  FAILED:")
        lines += [f"    - {issue}" for issue in report.issues]
    return "\n".join(lines)
