"""Test the in-memory store implementations."""

from datetime import timedelta

import pytest

from factories import T0, make_rec
from trade_calibration.core.interfaces import ICalibrationStore, IRecommendationStore
from trade_calibration.core.models import CalibrationData
from trade_calibration.storage.memory import InMemoryCalibrationStore, InMemoryRecommendationStore


def _cal(market: str, days_after_t0: float) -> CalibrationData:
    return CalibrationData(
        market=market,
        window_days=60,
        points=(),
        sample_size=10,
        correlation=0.1,
        computed_at=T0 + timedelta(days=days_after_t0),
    )


class TestInMemoryRecommendationStore:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryRecommendationStore(), IRecommendationStore)

    @pytest.mark.asyncio
    async def test_fetch_orders_ascending(self):
        store = InMemoryRecommendationStore([
            make_rec("close", 101.0, hours=5),
            make_rec("long", 100.0, hours=1),
        ])
        recs = await store.fetch()
        assert [r.action.value for r in recs] == ["long", "close"]

    @pytest.mark.asyncio
    async def test_filters_market_and_window(self):
        store = InMemoryRecommendationStore()
        store.extend([
            make_rec("long", 100.0, hours=0),
            make_rec("long", 100.0, hours=24 * 20),
            make_rec("short", 50.0, hours=24 * 20, market="ETH"),
        ])
        store.add(make_rec("close", 101.0, hours=24 * 25))
        now = T0 + timedelta(days=30)
        recs = await store.fetch(market="BTC", days=15, now=now)
        assert len(recs) == 2
        assert all(r.market == "BTC" for r in recs)
        assert len(store) == 4


class TestInMemoryCalibrationStore:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryCalibrationStore(), ICalibrationStore)

    @pytest.mark.asyncio
    async def test_latest_by_computed_at(self):
        store = InMemoryCalibrationStore()
        assert await store.save(_cal("BTC", 5)) == 1
        assert await store.save(_cal("BTC", 1)) == 2
        await store.save(_cal("ETH", 9))
        latest = await store.latest("BTC")
        assert latest is not None
        assert latest.computed_at == T0 + timedelta(days=5)
        assert len(await store.history("BTC")) == 2

    @pytest.mark.asyncio
    async def test_latest_missing(self):
        assert await InMemoryCalibrationStore().latest("SOL") is None
