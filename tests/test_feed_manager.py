"""Tests for the candle feed manager."""

import asyncio
from typing import List

import pytest

from signalboard.schemas.market import Candle, FeedState
from signalboard.services.cache.redis_client import get_price_cache
from signalboard.services.websocket.manager import FeedManager

from conftest import build_candles


class FakeFeedClient:
    """Streams a canned history and one live update, then stays open."""

    instances: List["FakeFeedClient"] = []
    history: List[Candle] = []
    connect_ok = True

    def __init__(self):
        self.subscribed: List[str] = []
        self.closed = False
        FakeFeedClient.instances.append(self)

    async def connect(self) -> bool:
        return FakeFeedClient.connect_ok

    async def subscribe_candles(self, asset_id: str, count: int) -> bool:
        self.subscribed.append(asset_id)
        return True

    async def listen(self, on_history=None, on_update=None) -> None:
        history = FakeFeedClient.history
        await on_history(history)
        last = history[-1]
        await on_update(Candle(
            time=last.time + 60_000,
            open=last.close,
            high=last.close + 0.001,
            low=last.close,
            close=last.close + 0.0008,
        ))
        await asyncio.Event().wait()

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client():
    FakeFeedClient.instances = []
    FakeFeedClient.history = build_candles(10)
    FakeFeedClient.connect_ok = True
    return FakeFeedClient


async def wait_for(predicate, timeout: float = 1.0) -> None:
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.005)
    await asyncio.wait_for(_poll(), timeout)


@pytest.mark.asyncio
class TestFeedManager:
    """Subscription, buffering and asset switching."""

    async def test_start_without_asset(self, fake_client):
        manager = FeedManager(client_factory=fake_client)
        assert await manager.start() is False
        assert manager.state == FeedState.DISCONNECTED

    async def test_streams_history_and_updates(self, fake_client):
        manager = FeedManager(client_factory=fake_client, history_count=300)
        await manager.start("frxEURUSD")
        await wait_for(lambda: len(manager.candles) == 11)

        assert manager.is_connected
        assert manager.asset_id == "frxEURUSD"
        assert fake_client.instances[0].subscribed == ["frxEURUSD"]
        assert manager.current_price == pytest.approx(manager.candles[-1].close)

        cache = get_price_cache()
        assert await cache.get_ltp("frxEURUSD") == pytest.approx(manager.current_price)
        assert (await cache.get_current_candle("frxEURUSD")).time == manager.candles[-1].time
        assert len(await cache.get_cached_candles("frxEURUSD")) == 10

        await manager.stop()
        assert manager.state == FeedState.DISCONNECTED
        assert fake_client.instances[0].closed

    async def test_update_callbacks(self, fake_client):
        received = []
        manager = FeedManager(client_factory=fake_client)
        manager.add_update_callback(lambda asset_id, candle: received.append((asset_id, candle.time)))

        await manager.start("R_100")
        await wait_for(lambda: len(received) == 2)
        await manager.stop()

        assert all(asset_id == "R_100" for asset_id, _ in received)

    async def test_switch_asset_resubscribes(self, fake_client):
        manager = FeedManager(client_factory=fake_client)
        await manager.start("frxEURUSD")
        await wait_for(lambda: len(manager.candles) == 11)

        await manager.switch_asset("R_50")
        assert manager.asset_id == "R_50"
        await wait_for(lambda: len(fake_client.instances) == 2 and len(manager.candles) == 11)

        assert fake_client.instances[0].closed
        assert fake_client.instances[1].subscribed == ["R_50"]
        await manager.stop()

    async def test_switch_when_stopped_only_clears(self, fake_client):
        manager = FeedManager(client_factory=fake_client)
        manager.buffer.load_history(build_candles(5))

        await manager.switch_asset("R_50")

        assert manager.candles == []
        assert manager.asset_id == "R_50"
        assert fake_client.instances == []

    async def test_reconnects_after_failed_connect(self, fake_client):
        fake_client.connect_ok = False
        manager = FeedManager(client_factory=fake_client)
        await manager.start("frxEURUSD")
        await wait_for(lambda: manager.state == FeedState.RECONNECTING)
        await manager.stop()
        assert manager.state == FeedState.DISCONNECTED
