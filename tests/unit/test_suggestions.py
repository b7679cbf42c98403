"""Test rule-based improvement suggestions."""

from factories import make_trade
from trade_calibration.backtester.results import (
    ActionBreakdown,
    ActionStats,
    ConfidenceAnalysis,
    StrategyPerformance,
)
from trade_calibration.backtester.suggestions import MAX_SUGGESTIONS, generate_suggestions


def _perf(pnl: float = 100.0, win_rate: float = 60.0, trades=None) -> StrategyPerformance:
    return StrategyPerformance(
        total_pnl_usd=pnl,
        win_rate=win_rate,
        num_trades=len(trades or []),
        trades=list(trades or []),
    )


def _conf(high: float = 60.0, low: float = 50.0, r: float = 0.1) -> ConfidenceAnalysis:
    return ConfidenceAnalysis(
        high_confidence_win_rate=high,
        low_confidence_win_rate=low,
        correlation=r,
    )


class TestGenerateSuggestions:
    def test_quiet_when_nothing_to_flag(self):
        out = generate_suggestions(_perf(), _perf(pnl=50.0), ActionBreakdown(), _conf())
        assert out == []

    def test_legacy_inversion_suggests_calibration(self):
        out = generate_suggestions(_perf(), _perf(), ActionBreakdown(), _conf(high=40.0, low=60.0))
        assert any("Consider running confidence calibration" in s for s in out)

    def test_calibration_improvement_reported(self):
        out = generate_suggestions(
            _perf(), _perf(), ActionBreakdown(), _conf(r=0.25), _conf(r=0.05),
        )
        assert out[0].startswith("Calibration improved correlation by 0.20")

    def test_calibration_degradation_reported(self):
        out = generate_suggestions(
            _perf(), _perf(), ActionBreakdown(), _conf(r=0.0), _conf(r=0.2),
        )
        assert any("Calibration degraded correlation" in s for s in out)

    def test_low_raw_correlation_points_at_calibrate_command(self):
        out = generate_suggestions(
            _perf(), _perf(), ActionBreakdown(), _conf(r=0.11), _conf(r=0.1), market="ETH",
        )
        assert any("trade-calibration calibrate -m ETH" in s for s in out)

    def test_scaling_and_inversion(self):
        scale = generate_suggestions(_perf(), _perf(), ActionBreakdown(), _conf(r=0.5))
        invert = generate_suggestions(_perf(), _perf(), ActionBreakdown(), _conf(r=-0.5))
        assert any("Scale position size" in s for s in scale)
        assert any("inverting confidence" in s for s in invert)

    def test_directional_bias(self):
        by_action = ActionBreakdown(
            long=ActionStats(count=5, win_rate=70.0),
            short=ActionStats(count=5, win_rate=40.0),
        )
        out = generate_suggestions(_perf(), _perf(), by_action, _conf())
        assert any(s.startswith("Long bias detected") for s in out)

    def test_buy_and_hold_gap(self):
        out = generate_suggestions(_perf(pnl=50.0), _perf(pnl=100.0), ActionBreakdown(), _conf())
        assert any("underperforming Buy & Hold by 50.0%" in s for s in out)

    def test_buy_and_hold_loss_never_flagged(self):
        out = generate_suggestions(_perf(pnl=-50.0), _perf(pnl=-10.0), ActionBreakdown(), _conf())
        assert not any("Buy & Hold" in s for s in out)

    def test_low_win_rate(self):
        out = generate_suggestions(_perf(win_rate=30.0), _perf(), ActionBreakdown(), _conf())
        assert any("Win rate below 50%" in s for s in out)

    def test_size_dispersion(self):
        trades = [make_trade(0.6, 1.0, size_usd=100.0), make_trade(0.6, 1.0, size_usd=5000.0)]
        out = generate_suggestions(_perf(trades=trades), _perf(), ActionBreakdown(), _conf())
        assert any("High variance in position sizes" in s for s in out)

    def test_all_rules_fire_in_priority_order(self):
        trades = [make_trade(0.6, 1.0, size_usd=100.0), make_trade(0.6, 1.0, size_usd=5000.0)]
        by_action = ActionBreakdown(
            long=ActionStats(count=5, win_rate=70.0),
            short=ActionStats(count=5, win_rate=10.0),
        )
        out = generate_suggestions(
            _perf(pnl=10.0, win_rate=20.0, trades=trades),
            _perf(pnl=100.0),
            by_action,
            _conf(r=-0.5),
            _conf(r=0.1),
        )
        assert len(out) == MAX_SUGGESTIONS
        assert out[0].startswith("Calibration degraded correlation")
        assert "inverting confidence" in out[1]
        assert out[2].startswith("Long bias detected")
        assert "Buy & Hold" in out[3]
        assert out[4].startswith("Win rate below 50%")
        assert out[5].startswith("High variance")
