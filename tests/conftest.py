"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time: keep tests off disk, the network and real LLMs
os.environ["SQLITE_PATH"] = ":memory:"
os.environ["FEED_ENABLED"] = "false"
os.environ["AUTO_SIGNAL_ENABLED"] = "false"
os.environ["REDIS_URL"] = "redis://localhost:1"
for _key in ("GEMINI_API_KEY", "ANTHROPIC_API_KEY", "OPENAI_API_KEY"):
    os.environ[_key] = ""

from datetime import datetime, timezone
from typing import Callable, List

import pytest
import pytest_asyncio

from signalboard.schemas.market import Candle
from signalboard.services.cache.redis_client import get_price_cache

# 2024-01-01 12:00:00 UTC
BASE_TIME_MS = int(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc).timestamp() * 1000)


def build_candles(
    count: int,
    start: float = 1.08000,
    step: float = 0.00010,
    spread: float = 0.00005,
) -> List[Candle]:
    """Build consecutive 1-minute candles drifting by `step` per candle."""
    candles = []
    price = start
    for i in range(count):
        open_price = price
        close_price = price + step
        candles.append(Candle(
            time=BASE_TIME_MS + i * 60_000,
            open=open_price,
            high=max(open_price, close_price) + spread,
            low=min(open_price, close_price) - spread,
            close=close_price,
        ))
        price = close_price
    return candles


@pytest.fixture
def candle_factory() -> Callable[..., List[Candle]]:
    """Factory for synthetic candle histories."""
    return build_candles


@pytest.fixture
def uptrend_candles() -> List[Candle]:
    """120 steadily rising candles (enough for every indicator)."""
    return build_candles(120)


@pytest.fixture
def sample_llm_output() -> dict:
    """Well-formed LLM reply for a bullish call."""
    return {
        "type": "CALL",
        "pattern": "Fib 0.618 Rejection",
        "confidence": 91,
        "description": "Price rejected the 0.618 level inside an ascending channel.",
    }


@pytest.fixture(autouse=True)
def clear_price_cache():
    """The in-memory price cache is a process singleton."""
    get_price_cache()._memory_cache.clear()
    yield
    get_price_cache()._memory_cache.clear()


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database for one test."""
    from signalboard.db.database import engine, init_db

    await init_db()
    yield engine
    # StaticPool holds the only connection; disposing it drops the in-memory tables
    await engine.dispose()
