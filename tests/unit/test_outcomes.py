"""Test extraction of calibration outcomes, including HOLD/CLOSE grading."""

import pytest

from factories import make_rec, make_trade
from trade_calibration.calibration.outcomes import (
    TradeOutcome,
    evaluate_decisions,
    extract_outcomes,
)
from trade_calibration.core.config import CalibrationConfig

DECISIONS_ON = CalibrationConfig(evaluate_decisions=True)


class TestTradeOutcome:
    def test_scored_by_raw_confidence(self):
        outcome = TradeOutcome.from_trade(make_trade(0.9, 2.0, raw_confidence=0.4))
        assert outcome.confidence == 0.4
        assert outcome.is_winner is True
        assert outcome.pnl_percent == 2.0

    def test_falls_back_to_served_confidence(self):
        outcome = TradeOutcome.from_trade(make_trade(0.9, -2.0))
        assert outcome.confidence == 0.9
        assert outcome.is_winner is False


class TestEvaluateDecisions:
    def test_confident_hold_before_big_move_is_loss(self):
        recs = [make_rec("hold", 100.0, hours=0, confidence=0.8), make_rec("hold", 102.0, hours=1)]
        outcomes = evaluate_decisions(recs)
        assert len(outcomes) == 1
        assert outcomes[0].is_winner is False
        assert outcomes[0].pnl_percent == pytest.approx(-2.0)
        assert outcomes[0].confidence == 0.8

    def test_hold_before_small_move_not_graded(self):
        recs = [make_rec("hold", 100.0, hours=0, confidence=0.8), make_rec("hold", 100.2, hours=1)]
        assert evaluate_decisions(recs) == []

    def test_unconfident_hold_not_graded(self):
        recs = [make_rec("hold", 100.0, hours=0, confidence=0.3), make_rec("hold", 110.0, hours=1)]
        assert evaluate_decisions(recs) == []

    def test_close_too_early_is_loss(self):
        recs = [
            make_rec("long", 100.0, hours=0),
            make_rec("close", 101.0, hours=1, confidence=0.7),
            make_rec("hold", 103.0, hours=2),
        ]
        outcomes = evaluate_decisions(recs)
        assert len(outcomes) == 1
        assert outcomes[0].is_winner is False
        assert outcomes[0].pnl_percent == pytest.approx(-2.0)

    def test_close_before_reversal_is_win(self):
        recs = [
            make_rec("short", 100.0, hours=0),
            make_rec("close", 95.0, hours=1, confidence=0.7),
            make_rec("hold", 98.0, hours=2),
        ]
        outcomes = evaluate_decisions(recs)
        assert len(outcomes) == 1
        assert outcomes[0].is_winner is True
        assert outcomes[0].pnl_percent == pytest.approx(3.0)

    def test_close_while_flat_not_graded(self):
        recs = [make_rec("close", 100.0, hours=0, confidence=0.9), make_rec("hold", 120.0, hours=1)]
        assert evaluate_decisions(recs) == []

    def test_penalty_weight_scales_loss(self):
        config = CalibrationConfig(hold_penalty_weight=0.5)
        recs = [make_rec("hold", 100.0, hours=0, confidence=0.8), make_rec("hold", 104.0, hours=1)]
        assert evaluate_decisions(recs, config)[0].pnl_percent == pytest.approx(-2.0)


class TestExtractOutcomes:
    def test_directional_only_by_default(self):
        recs = [
            make_rec("long", 100.0, hours=0),
            make_rec("hold", 110.0, hours=1, confidence=0.9),
            make_rec("close", 120.0, hours=2),
        ]
        outcomes = extract_outcomes(recs)
        assert len(outcomes) == 1
        assert outcomes[0].is_winner

    def test_decisions_added_when_enabled(self):
        recs = [
            make_rec("long", 100.0, hours=0),
            make_rec("hold", 110.0, hours=1, confidence=0.9),
            make_rec("close", 120.0, hours=2),
        ]
        outcomes = extract_outcomes(recs, config=DECISIONS_ON)
        assert len(outcomes) == 2
        assert outcomes[1].is_winner is False
