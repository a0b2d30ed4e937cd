"""Tests for LLM signal generation and error handling."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from signalboard.core.config import settings
from signalboard.schemas.signal import (
    AUTH_ERROR_PATTERN,
    ERROR_CATEGORY,
    RETRY_PATTERN,
    SIGNAL_CATEGORY,
    SignalType,
)
from signalboard.services.base import LLMAuthError
from signalboard.services.llm.client import LLMClient, LLMConfig, LLMProvider, LLMResponse
from signalboard.services.llm.interface import SignalInput
from signalboard.services.llm.prompts import SIGNAL_RESPONSE_SCHEMA
from signalboard.services.llm.signal_service import (
    DEFAULT_DESCRIPTION,
    DEFAULT_PATTERN,
    SignalService,
    is_auth_error,
    parse_llm_json,
)

NOW_MS = 1_704_110_452_000


def make_llm(content: str = None, error: Exception = None) -> MagicMock:
    """LLMClient stand-in returning `content` or raising `error`."""
    llm = MagicMock()
    if error is not None:
        llm.generate = AsyncMock(side_effect=error)
    else:
        llm.generate = AsyncMock(return_value=LLMResponse(
            content=content,
            model="gemini-2.5-flash",
            provider=LLMProvider.GEMINI,
            usage={},
        ))
    llm.is_configured = True
    return llm


# ---------------------------------------------------------------------------
# Reply parsing
# ---------------------------------------------------------------------------

class TestParseLLMJson:
    """JSON extraction from model replies."""

    def test_plain_object(self):
        assert parse_llm_json('{"type": "PUT"}') == {"type": "PUT"}

    def test_fenced_object(self):
        content = '```json\n{"type": "CALL", "confidence": 88}\n```'
        assert parse_llm_json(content) == {"type": "CALL", "confidence": 88}

    def test_empty_reply(self):
        assert parse_llm_json("") == {}
        assert parse_llm_json(None) == {}

    def test_invalid_json(self):
        with pytest.raises(ValueError):
            parse_llm_json("CALL, definitely")

    def test_non_object(self):
        with pytest.raises(ValueError):
            parse_llm_json('["CALL"]')


class TestIsAuthError:
    """Rejected-key detection."""

    def test_llm_auth_error(self):
        assert is_auth_error(LLMAuthError("LLMClient", "No LLM API key configured"))

    @pytest.mark.parametrize(
        "message",
        ["403 Forbidden", "Permission denied on resource", "models/gemini-x is not found"],
    )
    def test_message_markers(self, message):
        assert is_auth_error(RuntimeError(message))

    def test_other_errors(self):
        assert not is_auth_error(TimeoutError("read timed out"))


# ---------------------------------------------------------------------------
# Signal construction
# ---------------------------------------------------------------------------

class TestBuildSignal:
    """LLM output to Signal with defaults."""

    def test_full_output(self, sample_llm_output):
        signal = SignalService(llm_client=make_llm()).build_signal(sample_llm_output, NOW_MS)
        assert signal.id == f"ss-{NOW_MS}"
        assert signal.type == SignalType.CALL
        assert signal.pattern == "Fib 0.618 Rejection"
        assert signal.category == SIGNAL_CATEGORY
        assert signal.confidence == 91
        assert signal.time == NOW_MS
        assert signal.expires_at == NOW_MS + 60_000
        assert signal.voted is False

    def test_defaults(self):
        signal = SignalService(llm_client=make_llm()).build_signal({}, NOW_MS)
        assert signal.type == SignalType.NEUTRAL
        assert signal.pattern == DEFAULT_PATTERN
        assert signal.description == DEFAULT_DESCRIPTION
        assert signal.confidence == settings.default_confidence

    def test_lowercase_type(self):
        signal = SignalService(llm_client=make_llm()).build_signal({"type": "put"}, NOW_MS)
        assert signal.type == SignalType.PUT

    def test_unknown_type_is_neutral(self):
        signal = SignalService(llm_client=make_llm()).build_signal({"type": "BUY"}, NOW_MS)
        assert signal.type == SignalType.NEUTRAL

    def test_confidence_clamped(self):
        service = SignalService(llm_client=make_llm())
        assert service.build_signal({"confidence": 140}, NOW_MS).confidence == 100
        assert service.build_signal({"confidence": -5}, NOW_MS).confidence == 0

    def test_confidence_not_a_number(self):
        signal = SignalService(llm_client=make_llm()).build_signal({"confidence": "high"}, NOW_MS)
        assert signal.confidence == settings.default_confidence


class TestBuildErrorSignal:
    """Short-lived signals shown when analysis fails."""

    def test_retry_signal(self):
        signal = SignalService(llm_client=make_llm()).build_error_signal(TimeoutError("slow"), NOW_MS)
        assert signal.id == f"err-{NOW_MS}"
        assert signal.type == SignalType.NEUTRAL
        assert signal.category == ERROR_CATEGORY
        assert signal.pattern == RETRY_PATTERN
        assert signal.confidence == 0
        assert signal.expires_at == NOW_MS + 10_000
        assert signal.is_error and not signal.is_auth_error

    def test_auth_signal(self):
        signal = SignalService(llm_client=make_llm()).build_error_signal(
            RuntimeError("403 permission denied"), NOW_MS
        )
        assert signal.pattern == AUTH_ERROR_PATTERN
        assert signal.is_auth_error


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
class TestAnalyzeMarket:
    """End-to-end call with a mocked LLM."""

    async def test_successful_call(self, uptrend_candles, sample_llm_output):
        llm = make_llm(json.dumps(sample_llm_output))
        service = SignalService(llm_client=llm)

        signal = await service.analyze_market(uptrend_candles, "EUR/USD", None, now_ms=NOW_MS)

        assert signal.type == SignalType.CALL
        assert signal.time == NOW_MS
        kwargs = llm.generate.await_args.kwargs
        assert kwargs["response_schema"] == SIGNAL_RESPONSE_SCHEMA
        assert "EUR/USD" in kwargs["user_prompt"]
        assert settings.signal_language in kwargs["system_prompt"]

    async def test_llm_failure_becomes_error_signal(self, uptrend_candles):
        service = SignalService(llm_client=make_llm(error=TimeoutError("deadline exceeded")))
        signal = await service.analyze_market(uptrend_candles, "EUR/USD", None, now_ms=NOW_MS)
        assert signal.pattern == RETRY_PATTERN
        assert signal.category == ERROR_CATEGORY

    async def test_rejected_key_becomes_auth_signal(self, uptrend_candles):
        service = SignalService(llm_client=make_llm(error=LLMAuthError("LLMClient", "No LLM API key configured")))
        signal = await service.analyze_market(uptrend_candles, "EUR/USD", None, now_ms=NOW_MS)
        assert signal.is_auth_error

    async def test_garbage_reply_becomes_error_signal(self, uptrend_candles):
        service = SignalService(llm_client=make_llm("I think it goes up"))
        signal = await service.analyze_market(uptrend_candles, "EUR/USD", None, now_ms=NOW_MS)
        assert signal.is_error

    async def test_execute(self, uptrend_candles, sample_llm_output):
        service = SignalService(llm_client=make_llm(json.dumps(sample_llm_output)))
        signal = await service.execute(SignalInput(candles=uptrend_candles, asset_name="V-100 INDEX"))
        assert signal.type == SignalType.CALL
        assert service.name == "SignalService"

    async def test_health_check_follows_configured_keys(self):
        assert await SignalService(llm_client=make_llm()).health_check() is True

        unconfigured = SignalService(llm_client=LLMClient(LLMConfig(provider=LLMProvider.GEMINI)))
        assert await unconfigured.health_check() is False
