"""Test performance, per-action and confidence analysis of closed trades."""

import pytest

from factories import make_rec, make_trade
from trade_calibration.backtester.results import (
    BacktestResult,
    StrategyPerformance,
    analyze,
    compute_action_breakdown,
    compute_confidence_analysis,
    compute_performance,
    compute_raw_confidence_analysis,
)
from trade_calibration.core.enums import Direction


class TestComputePerformance:
    def test_no_trades_is_all_zero(self):
        perf = compute_performance([])
        assert perf.total_pnl_usd == 0.0
        assert perf.total_return_percent == 0.0
        assert perf.win_rate == 0.0
        assert perf.avg_trade_return_usd == 0.0
        assert perf.avg_trade_return_percent == 0.0
        assert perf.num_trades == 0
        assert perf.trades == []

    def test_totals_and_win_rate(self):
        trades = [make_trade(0.8, 2.0), make_trade(0.5, -1.0), make_trade(0.6, 3.0)]
        perf = compute_performance(trades)
        assert perf.num_trades == 3
        assert perf.total_pnl_usd == pytest.approx(40.0)
        assert perf.win_rate == pytest.approx(200.0 / 3)
        assert perf.avg_trade_return_usd == pytest.approx(40.0 / 3)
        assert perf.avg_trade_return_percent == pytest.approx(4.0 / 3)

    def test_return_against_capital_base(self):
        perf = compute_performance([make_trade(0.7, 10.0)], capital_base=10_000.0)
        assert perf.total_return_percent == pytest.approx(1.0)

    def test_return_falls_back_to_largest_trade_size(self):
        trades = [
            make_trade(0.7, 10.0, size_usd=500.0),
            make_trade(0.7, 10.0, size_usd=2000.0),
        ]
        perf = compute_performance(trades)
        # 50 + 200 over the 2000 largest position
        assert perf.total_return_percent == pytest.approx(12.5)

    def test_zero_pnl_trade_is_not_a_win(self):
        perf = compute_performance([make_trade(0.7, 0.0)])
        assert perf.win_rate == 0.0


class TestActionBreakdown:
    def test_counts_every_action_and_scores_directions(self):
        recs = [
            make_rec("long", 100.0, hours=0),
            make_rec("hold", 101.0, hours=1),
            make_rec("short", 110.0, hours=2),
            make_rec("close", 105.0, hours=3),
            make_rec("hold", 105.0, hours=4),
        ]
        trades = [
            make_trade(0.6, 10.0, direction=Direction.LONG),
            make_trade(0.6, 4.5, direction=Direction.SHORT),
        ]
        breakdown = compute_action_breakdown(recs, trades)
        assert breakdown.long.count == 1
        assert breakdown.short.count == 1
        assert breakdown.hold.count == 2
        assert breakdown.close.count == 1
        assert breakdown.long.win_rate == 100.0
        assert breakdown.long.avg_pnl == pytest.approx(100.0)
        assert breakdown.hold.win_rate == 0.0

    def test_to_dict_has_all_actions(self):
        breakdown = compute_action_breakdown([make_rec("hold", 1.0)], [])
        assert set(breakdown.to_dict()) == {"long", "short", "hold", "close"}


class TestConfidenceAnalysis:
    def test_split_at_threshold(self):
        trades = [
            make_trade(0.9, 2.0),
            make_trade(0.7, 1.0),
            make_trade(0.6, -1.0),
            make_trade(0.4, 1.0),
        ]
        analysis = compute_confidence_analysis(trades)
        assert analysis.high_confidence_win_rate == 100.0
        assert analysis.low_confidence_win_rate == 50.0
        assert analysis.correlation > 0

    def test_empty_is_zero(self):
        analysis = compute_confidence_analysis([])
        assert analysis.correlation == 0.0
        assert analysis.high_confidence_win_rate == 0.0

    def test_constant_confidence_has_zero_correlation(self):
        trades = [make_trade(0.5, 1.0), make_trade(0.5, -2.0), make_trade(0.5, 3.0)]
        assert compute_confidence_analysis(trades).correlation == 0.0

    def test_raw_analysis_absent_without_raw_scores(self):
        assert compute_raw_confidence_analysis([make_trade(0.8, 1.0)]) is None

    def test_raw_analysis_uses_raw_scores(self):
        trades = [
            make_trade(0.9, -1.0, raw_confidence=0.2),
            make_trade(0.2, 1.0, raw_confidence=0.9),
        ]
        served = compute_confidence_analysis(trades)
        raw = compute_raw_confidence_analysis(trades)
        assert served.correlation == pytest.approx(-1.0)
        assert raw is not None
        assert raw.correlation == pytest.approx(1.0)
        assert raw.high_confidence_win_rate == 100.0


class TestBacktestResult:
    def test_to_dict_shape(self):
        recs = [make_rec("long", 100.0, hours=0), make_rec("close", 110.0, hours=5)]
        trades = [make_trade(0.6, 10.0)]
        perf, by_action, conf, raw = analyze(trades, recs)
        result = BacktestResult(
            market="BTC",
            start=recs[0].timestamp,
            end=recs[-1].timestamp,
            total_recommendations=2,
            recommended_strategy=perf,
            buy_and_hold_strategy=StrategyPerformance(),
            by_action=by_action,
            confidence_analysis=conf,
            raw_confidence_analysis=raw,
        )
        data = result.to_dict()
        assert data["market"] == "BTC"
        assert data["date_range"]["start"] == recs[0].timestamp.isoformat()
        assert data["raw_confidence_analysis"] is None
        assert len(data["recommended_strategy"]["trades"]) == 1
        assert result.summary()["trades"] == 1
