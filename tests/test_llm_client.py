"""Tests for provider selection, fallback and structured replies in the LLM client."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from signalboard.services.base import LLMAuthError
from signalboard.services.llm.client import (
    REPLY_NAME,
    AnthropicClient,
    GeminiClient,
    LLMClient,
    LLMConfig,
    LLMProvider,
    LLMResponse,
    OpenAIClient,
    strict_schema,
)
from signalboard.services.llm.prompts import SIGNAL_RESPONSE_SCHEMA

REPLY = {"type": "PUT", "pattern": "R1 Rejection", "confidence": 81, "description": "Rejected at R1."}


def make_response(provider: LLMProvider) -> LLMResponse:
    return LLMResponse(content="{}", model="m", provider=provider, usage={})


class TestProviderSetup:
    """Primary and fallback clients from the configured keys."""

    def test_gemini_with_anthropic_fallback(self):
        client = LLMClient(LLMConfig(
            provider=LLMProvider.GEMINI,
            gemini_api_key="g",
            anthropic_api_key="a",
        ))
        assert isinstance(client._primary, GeminiClient)
        assert isinstance(client._fallback, AnthropicClient)
        assert client.get_active_provider() == LLMProvider.GEMINI

    def test_fallback_order(self):
        client = LLMClient(LLMConfig(
            provider=LLMProvider.ANTHROPIC,
            anthropic_api_key="a",
            gemini_api_key="g",
            openai_api_key="o",
        ))
        assert isinstance(client._fallback, GeminiClient)

    def test_missing_primary_key_uses_fallback(self):
        client = LLMClient(LLMConfig(provider=LLMProvider.GEMINI, openai_api_key="o"))
        assert client._primary is None
        assert isinstance(client._fallback, OpenAIClient)
        assert client.get_active_provider() == LLMProvider.OPENAI

    def test_no_keys(self):
        client = LLMClient(LLMConfig(provider=LLMProvider.ANTHROPIC))
        assert client.is_configured is False
        assert client.get_active_provider() is None


@pytest.mark.asyncio
class TestGenerate:
    """Defaults and fallback on provider failure."""

    async def test_no_keys_is_auth_error(self):
        client = LLMClient(LLMConfig(provider=LLMProvider.GEMINI))
        with pytest.raises(LLMAuthError):
            await client.generate("system", "user")

    async def test_primary_success_with_config_defaults(self):
        client = LLMClient(LLMConfig(
            provider=LLMProvider.OPENAI,
            openai_api_key="o",
            gemini_api_key="g",
            temperature=0.2,
            max_tokens=256,
        ))
        client._primary.generate = AsyncMock(return_value=make_response(LLMProvider.OPENAI))
        client._fallback.generate = AsyncMock()

        response = await client.generate("system", "user", response_schema=SIGNAL_RESPONSE_SCHEMA)

        assert response.provider == LLMProvider.OPENAI
        kwargs = client._primary.generate.await_args.kwargs
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 256
        assert kwargs["response_schema"] == SIGNAL_RESPONSE_SCHEMA
        client._fallback.generate.assert_not_called()

    async def test_falls_back_on_primary_error(self):
        client = LLMClient(LLMConfig(provider=LLMProvider.OPENAI, openai_api_key="o", gemini_api_key="g"))
        client._primary.generate = AsyncMock(side_effect=RuntimeError("503"))
        client._fallback.generate = AsyncMock(return_value=make_response(LLMProvider.GEMINI))

        response = await client.generate("system", "user")
        assert response.provider == LLMProvider.GEMINI

    async def test_primary_error_without_fallback_propagates(self):
        client = LLMClient(LLMConfig(provider=LLMProvider.ANTHROPIC, anthropic_api_key="a"))
        client._primary.generate = AsyncMock(side_effect=RuntimeError("403 permission denied"))

        with pytest.raises(RuntimeError, match="403"):
            await client.generate("system", "user")


class TestStrictSchema:
    """OpenAI strict mode needs closed objects."""

    def test_closes_objects_without_touching_input(self):
        schema = strict_schema(SIGNAL_RESPONSE_SCHEMA)
        assert schema["additionalProperties"] is False
        assert schema["properties"]["type"]["enum"] == ["CALL", "PUT", "NEUTRAL"]
        assert "additionalProperties" not in SIGNAL_RESPONSE_SCHEMA


@pytest.mark.asyncio
class TestProviderReplies:
    """Each provider is asked for, and returns, the signal JSON."""

    async def test_gemini_response_schema(self):
        client = GeminiClient(LLMConfig(provider=LLMProvider.GEMINI, gemini_api_key="g"))
        model = MagicMock()
        model.generate_content.return_value = SimpleNamespace(
            text=json.dumps(REPLY),
            usage_metadata=SimpleNamespace(prompt_token_count=120, candidates_token_count=30),
        )
        client._get_model = MagicMock(return_value=model)

        response = await client.generate("system", "user", 0.3, 512, SIGNAL_RESPONSE_SCHEMA)

        client._get_model.assert_called_once_with("system")
        config = model.generate_content.call_args.kwargs["generation_config"]
        assert config["response_mime_type"] == "application/json"
        assert config["response_schema"] == SIGNAL_RESPONSE_SCHEMA
        assert config["max_output_tokens"] == 512
        assert json.loads(response.content) == REPLY
        assert response.usage == {"prompt_tokens": 120, "completion_tokens": 30}

    async def test_anthropic_forced_tool_call(self):
        client = AnthropicClient(LLMConfig(provider=LLMProvider.ANTHROPIC, anthropic_api_key="a"))
        client._client = MagicMock()
        client._client.messages.create = AsyncMock(return_value=SimpleNamespace(
            content=[SimpleNamespace(type="tool_use", input=REPLY)],
            usage=SimpleNamespace(input_tokens=90, output_tokens=25),
        ))

        response = await client.generate("system", "user", 0.3, 512, SIGNAL_RESPONSE_SCHEMA)

        kwargs = client._client.messages.create.await_args.kwargs
        assert kwargs["tools"][0]["input_schema"] == SIGNAL_RESPONSE_SCHEMA
        assert kwargs["tool_choice"] == {"type": "tool", "name": REPLY_NAME}
        assert kwargs["system"] == "system"
        assert json.loads(response.content) == REPLY
        assert response.provider == LLMProvider.ANTHROPIC

    async def test_anthropic_plain_text_without_schema(self):
        client = AnthropicClient(LLMConfig(provider=LLMProvider.ANTHROPIC, anthropic_api_key="a"))
        client._client = MagicMock()
        client._client.messages.create = AsyncMock(return_value=SimpleNamespace(
            content=[SimpleNamespace(type="text", text="hello")],
            usage=SimpleNamespace(input_tokens=5, output_tokens=1),
        ))

        response = await client.generate("system", "user", 0.3, 64)

        assert "tools" not in client._client.messages.create.await_args.kwargs
        assert response.content == "hello"

    async def test_openai_strict_json_schema(self):
        client = OpenAIClient(LLMConfig(provider=LLMProvider.OPENAI, openai_api_key="o"))
        client._client = MagicMock()
        client._client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=json.dumps(REPLY)))],
            usage=SimpleNamespace(prompt_tokens=100, completion_tokens=20),
        ))

        response = await client.generate("system", "user", 0.3, 512, SIGNAL_RESPONSE_SCHEMA)

        response_format = client._client.chat.completions.create.await_args.kwargs["response_format"]
        assert response_format["type"] == "json_schema"
        assert response_format["json_schema"]["strict"] is True
        assert response_format["json_schema"]["schema"]["additionalProperties"] is False
        assert json.loads(response.content) == REPLY
