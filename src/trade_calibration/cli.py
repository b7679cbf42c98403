"""CLI entry point for the calibration engine."""

from __future__ import annotations

import asyncio
import json
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable

import click

from .core.config import Settings, load_settings
from .core.errors import (
    CalibrationEngineError,
    InsufficientDataError,
    InvalidInputError,
    StorageError,
)
from .observability.logger import new_run_id, setup_logging

_HINTS: list[tuple[type[CalibrationEngineError], str]] = [
    (InsufficientDataError, "Try a longer time window (--days 90) or record more recommendations."),
    (InvalidInputError, "Check the market symbol and that recommendations were recorded for it."),
    (StorageError, "Check database_url (TRADECAL_DATABASE_URL) and that the database is reachable."),
]


@asynccontextmanager
async def _stores(settings: Settings) -> AsyncIterator[tuple[Any, Any]]:
    from sqlalchemy.exc import SQLAlchemyError

    from .storage.sql.connection import create_all, create_engine, create_session_factory
    from .storage.sql.repos import SqlCalibrationStore, SqlRecommendationStore

    engine = create_engine(settings.database_url, use_null_pool=True)
    try:
        try:
            await create_all(engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot open database: {exc}") from exc
        factory = create_session_factory(engine)
        yield SqlRecommendationStore(factory), SqlCalibrationStore(factory)
    finally:
        await engine.dispose()


def _run(fn: Callable[[], Awaitable[int]]) -> None:
    """Run ``fn`` and turn engine errors into a hint and a non-zero exit."""
    try:
        code = asyncio.run(fn())
    except CalibrationEngineError as exc:
        click.echo(f"Error: {exc}", err=True)
        for exc_type, hint in _HINTS:
            if isinstance(exc, exc_type):
                click.echo(f"Hint: {hint}", err=True)
                break
        sys.exit(1)
    sys.exit(code)


def _service(settings: Settings, recs: Any, cals: Any):
    from .backtester.simulator import PositionSimulator
    from .calibration.service import CalibrationService

    return CalibrationService(
        recs,
        cals,
        config=settings.calibration,
        health_config=settings.health,
        simulator=PositionSimulator(settings.simulation.default_size_usd),
    )


@click.group()
@click.option("--config", default=None, help="Config file path (TOML)")
@click.option("--database-url", default=None, help="Database URL override")
@click.option("--log-level", default=None, help="Log level override")
@click.pass_context
def main(ctx: click.Context, config: str | None, database_url: str | None, log_level: str | None) -> None:
    """Confidence calibration and backtesting for trade recommendations."""
    overrides: dict = {}
    if database_url:
        overrides["database_url"] = database_url
    if log_level:
        overrides["observability"] = {"log_level": log_level}

    try:
        settings = load_settings(config_path=config, overrides=overrides)
    except CalibrationEngineError as exc:
        raise click.ClickException(str(exc)) from exc

    setup_logging(settings.observability.log_level, settings.observability.log_format)
    new_run_id()
    ctx.obj = settings


@main.command()
@click.option("-m", "--market", required=True, help="Market symbol (e.g. BTC)")
@click.option("--days", default=None, type=int, help="Only the last N days (default: all history)")
@click.option("--capital-base", default=0.0, type=float, help="Capital base for return %")
@click.option("--json", "as_json", is_flag=True, help="Emit the full result as JSON")
@click.pass_obj
def backtest(settings: Settings, market: str, days: int | None, capital_base: float, as_json: bool) -> None:
    """Backtest recorded recommendations against buy-and-hold."""
    from .backtester.engine import BacktestEngine
    from .backtester.simulator import PositionSimulator
    from .reporting import format_backtest

    async def _backtest() -> int:
        async with _stores(settings) as (recs, _):
            engine = BacktestEngine(
                recs,
                PositionSimulator(settings.simulation.default_size_usd),
                settings.calibration.high_confidence_threshold,
            )
            result = await engine.run(market=market.upper(), days=days, capital_base=capital_base)
        if as_json:
            click.echo(json.dumps(result.to_dict(), indent=2))
        else:
            click.echo(format_backtest(result))
        return 0

    _run(_backtest)


@main.command()
@click.option("-m", "--market", required=True, help="Market symbol (e.g. BTC)")
@click.option("--days", default=None, type=int, help="Calibration window in days (default: 60)")
@click.option("--dry-run", is_flag=True, help="Compute and show, but do not save")
@click.pass_obj
def calibrate(settings: Settings, market: str, days: int | None, dry_run: bool) -> None:
    """Compute a confidence calibration for a market."""
    from .reporting import format_calibration

    async def _calibrate() -> int:
        async with _stores(settings) as (recs, cals):
            service = _service(settings, recs, cals)
            calibration = await service.compute_calibration(market.upper(), days)
            saved_id = None if dry_run else await service.save(calibration)
        click.echo(format_calibration(calibration, saved_id))
        return 0

    _run(_calibrate)


@main.command()
@click.option("-m", "--market", "markets", multiple=True, help="Market symbol (repeatable; default: BTC, ETH)")
@click.pass_obj
def status(settings: Settings, markets: tuple[str, ...]) -> None:
    """Show calibration health per market."""
    from .reporting import format_status

    async def _status() -> int:
        async with _stores(settings) as (recs, cals):
            service = _service(settings, recs, cals)
            statuses = await service.status([m.upper() for m in markets] or None)
        click.echo(format_status(statuses))
        return 0

    _run(_status)


@main.command()
@click.option("-m", "--market", required=True, help="Market symbol (e.g. BTC)")
@click.option("--days", default=None, type=int, help="Calibration window in days (default: 60)")
@click.pass_obj
def validate(settings: Settings, market: str, days: int | None) -> None:
    """Check that calibration improves confidence quality. Exits 1 on failure."""
    from .reporting import format_validation

    async def _validate() -> int:
        async with _stores(settings) as (recs, cals):
            report = await _service(settings, recs, cals).validate(market.upper(), days)
        click.echo(format_validation(report))
        return 0 if report.passes else 1

    _run(_validate)


if __name__ == "__main__":
    main()
