"""Tests for the Deriv WebSocket protocol helpers."""

import pytest

from signalboard.schemas.market import Candle
from signalboard.services.base import FeedError
from signalboard.services.data_ingestion.deriv_adapter import (
    DerivClient,
    build_history_request,
    parse_message,
)


class TestBuildHistoryRequest:
    """ticks_history requests in candle style."""

    def test_subscribe_request(self):
        assert build_history_request("frxEURUSD", 300) == {
            "ticks_history": "frxEURUSD",
            "count": 300,
            "end": "latest",
            "granularity": 60,
            "style": "candles",
            "subscribe": 1,
        }

    def test_one_shot_request(self):
        request = build_history_request("R_100", 50, subscribe=False)
        assert "subscribe" not in request
        assert request["count"] == 50


class TestParseMessage:
    """Normalizing provider replies."""

    def test_candles_reply(self):
        kind, payload = parse_message({
            "msg_type": "candles",
            "candles": [
                {"epoch": 60, "open": 1, "high": 2, "low": 0.5, "close": 1.5},
                {"epoch": 120, "open": 1.5, "high": 2, "low": 1, "close": 1.8},
            ],
        })
        assert kind == "candles"
        assert [c.time for c in payload] == [60_000, 120_000]
        assert all(isinstance(c, Candle) for c in payload)

    def test_empty_candles_reply(self):
        kind, payload = parse_message({"msg_type": "candles"})
        assert kind == "candles"
        assert payload == []

    def test_ohlc_reply(self):
        kind, payload = parse_message({
            "msg_type": "ohlc",
            "ohlc": {
                "open_time": 180,
                "open": "1.1",
                "high": "1.2",
                "low": "1.0",
                "close": "1.05",
            },
        })
        assert kind == "ohlc"
        assert payload.time == 180_000
        assert payload.close == 1.05

    def test_other_reply_passes_through(self):
        data = {"msg_type": "ping", "ping": "pong"}
        assert parse_message(data) == ("ping", data)

    def test_error_reply_raises(self):
        with pytest.raises(FeedError) as exc_info:
            parse_message({
                "msg_type": "ticks_history",
                "error": {"code": "InvalidSymbol", "message": "Symbol XYZ is invalid."},
            })
        assert exc_info.value.details["code"] == "InvalidSymbol"
        assert "Symbol XYZ is invalid." in str(exc_info.value)


class TestDerivClient:
    """Connection bookkeeping that needs no network."""

    def test_url_carries_app_id(self):
        client = DerivClient(ws_url="wss://example.test/websockets/v3", app_id=42)
        assert client.url == "wss://example.test/websockets/v3?app_id=42"

    def test_not_connected_initially(self):
        assert DerivClient().is_connected is False

    @pytest.mark.asyncio
    async def test_close_without_connection(self):
        client = DerivClient()
        await client.close()
        assert client.is_connected is False
