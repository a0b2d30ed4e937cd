"""Tests for candle parsing and the bounded candle buffer."""

import pytest

from signalboard.schemas.market import Candle
from signalboard.services.data_ingestion.candles import (
    CandleBuffer,
    DEFAULT_VOLUME,
    parse_history_candle,
    parse_ohlc_update,
)


def make_candle(minute: int, close: float = 1.1) -> Candle:
    return Candle(time=minute * 60_000, open=1.1, high=1.2, low=1.0, close=close)


class TestParsing:
    """Provider payloads to Candle."""

    def test_history_entry(self):
        candle = parse_history_candle(
            {"epoch": 1704110400, "open": "1.1", "high": 1.2, "low": 1.0, "close": "1.15"}
        )
        assert candle.time == 1704110400000
        assert candle.open == 1.1
        assert candle.close == 1.15
        assert candle.volume == DEFAULT_VOLUME

    def test_ohlc_update_uses_open_time(self):
        candle = parse_ohlc_update({
            "epoch": 1704110423,
            "open_time": 1704110400,
            "open": "1.10000",
            "high": "1.10020",
            "low": "1.09990",
            "close": "1.10010",
        })
        assert candle.time == 1704110400000
        assert candle.high == pytest.approx(1.1002)
        assert candle.volume == 100

    def test_missing_field_raises(self):
        with pytest.raises(KeyError):
            parse_history_candle({"epoch": 1, "open": 1, "high": 1, "low": 1})


class TestCandleBuffer:
    """History snapshots and live updates."""

    def test_load_history_replaces(self):
        buffer = CandleBuffer()
        buffer.load_history([make_candle(0), make_candle(1)])
        buffer.load_history([make_candle(5)])
        assert len(buffer) == 1
        assert buffer.last.time == 5 * 60_000

    def test_load_history_sets_price(self):
        buffer = CandleBuffer()
        buffer.load_history([make_candle(0, close=1.3)])
        assert buffer.current_price == 1.3

    def test_load_history_keeps_newest(self):
        buffer = CandleBuffer(max_size=3)
        buffer.load_history([make_candle(i) for i in range(5)])
        assert [c.time for c in buffer.candles] == [2 * 60_000, 3 * 60_000, 4 * 60_000]

    def test_update_same_open_time_replaces_last(self):
        buffer = CandleBuffer()
        buffer.load_history([make_candle(0), make_candle(1, close=1.1)])
        changed = buffer.apply_update(make_candle(1, close=1.15))
        assert changed is True
        assert len(buffer) == 2
        assert buffer.last.close == 1.15
        assert buffer.current_price == 1.15

    def test_update_new_open_time_appends(self):
        buffer = CandleBuffer()
        buffer.load_history([make_candle(0)])
        buffer.apply_update(make_candle(1))
        assert len(buffer) == 2

    def test_append_respects_max_size(self):
        buffer = CandleBuffer(max_size=2)
        buffer.load_history([make_candle(0), make_candle(1)])
        buffer.apply_update(make_candle(2))
        assert [c.time for c in buffer.candles] == [60_000, 120_000]

    def test_update_before_history_is_dropped(self):
        buffer = CandleBuffer()
        changed = buffer.apply_update(make_candle(0, close=1.17))
        assert changed is False
        assert len(buffer) == 0
        assert buffer.current_price == 1.17

    def test_candles_is_a_copy(self):
        buffer = CandleBuffer()
        buffer.load_history([make_candle(0)])
        buffer.candles.append(make_candle(1))
        assert len(buffer) == 1

    def test_clear(self):
        buffer = CandleBuffer()
        buffer.load_history([make_candle(0)])
        buffer.clear()
        assert len(buffer) == 0
        assert buffer.last is None
        assert buffer.current_price is None
