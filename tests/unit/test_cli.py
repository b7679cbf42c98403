"""Test the click CLI against a seeded SQLite database."""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest
from click.testing import CliRunner
from sqlalchemy import update

from factories import random_walk_recs
from trade_calibration.cli import main
from trade_calibration.storage.sql.connection import (
    create_all,
    create_engine,
    create_session_factory,
    session_scope,
)
from trade_calibration.storage.sql.models import RecommendationRecord
from trade_calibration.storage.sql.repos import SqlRecommendationStore


async def _seed(url: str, recs) -> None:
    engine = create_engine(url)
    await create_all(engine)
    store = SqlRecommendationStore(create_session_factory(engine))
    for rec in recs:
        await store.add(rec)
    await engine.dispose()


async def _set_action(url: str, *, row_id: int, action: str) -> None:
    engine = create_engine(url)
    async with session_scope(create_session_factory(engine)) as session:
        await session.execute(
            update(RecommendationRecord).where(RecommendationRecord.id == row_id).values(action=action)
        )
    await engine.dispose()


@pytest.fixture
def db_url(tmp_path) -> str:
    url = f"sqlite+aiosqlite:///{tmp_path / 'cal.db'}"
    start = datetime.now(timezone.utc) - timedelta(days=30)
    asyncio.run(_seed(url, random_walk_recs(150, start=start)))
    return url


def _invoke(db_url: str, *args: str):
    return CliRunner().invoke(main, ["--database-url", db_url, "--log-level", "WARNING", *args])


class TestBacktestCommand:
    def test_text_report(self, db_url):
        result = _invoke(db_url, "backtest", "-m", "btc")
        assert result.exit_code == 0, result.output
        assert "BACKTEST: BTC" in result.output
        assert "Buy & Hold" in result.output

    def test_json_output(self, db_url):
        result = _invoke(db_url, "backtest", "-m", "BTC", "--days", "60", "--capital-base", "5000", "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["market"] == "BTC"
        assert data["total_recommendations"] == 150
        assert data["capital_base"] == 5000.0
        assert set(data["by_action"]) == {"long", "short", "hold", "close"}

    def test_unknown_market_exits_non_zero(self, db_url):
        result = _invoke(db_url, "backtest", "-m", "DOGE")
        assert result.exit_code == 1
        assert "No recommendations found" in result.output
        assert "Hint:" in result.output

    def test_corrupted_row_reports_error_and_hint(self, db_url):
        asyncio.run(_set_action(db_url, row_id=5, action="buy"))
        result = _invoke(db_url, "backtest", "-m", "btc")
        assert result.exit_code == 1
        assert "Error: Invalid stored recommendation id=5" in result.output
        assert "Hint:" in result.output


class TestCalibrateCommand:
    def test_dry_run_does_not_save(self, db_url):
        result = _invoke(db_url, "calibrate", "-m", "BTC", "--dry-run")
        assert result.exit_code == 0, result.output
        assert "Dry run" in result.output
        status = _invoke(db_url, "status", "-m", "BTC")
        assert "NO CALIBRATION" in status.output

    def test_saves_and_reports_healthy_or_flagged(self, db_url):
        result = _invoke(db_url, "calibrate", "-m", "BTC", "--days", "60")
        assert result.exit_code == 0, result.output
        assert "Saved calibration #1" in result.output
        assert "--- Curve ---" in result.output

        status = _invoke(db_url, "status")
        assert status.exit_code == 0, status.output
        assert "BTC:" in status.output
        assert "ETH: [--]   NO CALIBRATION" in status.output
        assert "BTC: [--]" not in status.output

    def test_insufficient_data_hint(self, db_url):
        result = _invoke(db_url, "calibrate", "-m", "ETH")
        assert result.exit_code == 1
        assert "Insufficient data" in result.output
        assert "--days 90" in result.output


class TestValidateCommand:
    def test_report_and_exit_code(self, db_url):
        result = _invoke(db_url, "validate", "-m", "BTC")
        assert result.exit_code in (0, 1)
        assert "CALIBRATION VALIDATION: BTC" in result.output
        assert ("PASSED" in result.output) == (result.exit_code == 0)
