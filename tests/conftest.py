"""Shared fixtures for the trade-calibration test suite."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

import pytest

from factories import T0, make_rec, make_trade, random_walk_recs
from trade_calibration.core.clock import SimClock
from trade_calibration.core.models import ClosedTrade, Recommendation


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def sim_clock() -> SimClock:
    """Clock fixed 30 days after T0."""
    return SimClock(start=T0 + timedelta(days=30))


@pytest.fixture
def rec_factory() -> Callable[..., Recommendation]:
    return make_rec


@pytest.fixture
def trade_factory() -> Callable[..., ClosedTrade]:
    return make_trade


@pytest.fixture
def sample_stream() -> list[Recommendation]:
    """200 seeded recommendations spanning ~33 days from T0."""
    return random_walk_recs(200)
