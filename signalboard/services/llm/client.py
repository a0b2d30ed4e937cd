"""
LLM Client Abstraction

One entry point for Google Gemini, Anthropic Claude and OpenAI, tuned for
short structured replies: the caller passes a JSON schema and every
provider is made to answer with a single JSON object that matches it.

- Gemini: response_schema on the generation config
- Claude: a forced tool call whose input_schema is the schema
- OpenAI: strict json_schema response format

The primary provider is tried first; a configured fallback takes over when
it fails.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
import asyncio
import copy
import json
import logging

from signalboard.services.base import LLMAuthError

logger = logging.getLogger(__name__)

# Name under which the schema is registered with Claude / OpenAI
REPLY_NAME = "submit_signal"


class LLMProvider(str, Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GEMINI = "gemini"


@dataclass
class LLMConfig:
    """Configuration for LLM client."""

    provider: LLMProvider
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    anthropic_model: str = "claude-3-5-haiku-latest"
    openai_model: str = "gpt-4o-mini"
    max_tokens: int = 1024
    temperature: float = 0.3

    def api_key_for(self, provider: LLMProvider) -> Optional[str]:
        return {
            LLMProvider.GEMINI: self.gemini_api_key,
            LLMProvider.ANTHROPIC: self.anthropic_api_key,
            LLMProvider.OPENAI: self.openai_api_key,
        }[provider]


@dataclass
class LLMResponse:
    """Reply text (a JSON document when a schema was given) plus token usage."""

    content: str
    model: str
    provider: LLMProvider
    usage: dict


def strict_schema(schema: dict) -> dict:
    """Copy of `schema` with additionalProperties closed on every object (OpenAI strict mode)."""
    result = copy.deepcopy(schema)
    if result.get("type") == "object":
        result["additionalProperties"] = False
        result["properties"] = {
            name: strict_schema(prop) for name, prop in result.get("properties", {}).items()
        }
    return result


class BaseLLMClient(ABC):
    """One provider. Subclasses only translate the request and the reply."""

    provider: LLMProvider

    def __init__(self, config: LLMConfig):
        self.config = config

    @property
    @abstractmethod
    def model(self) -> str:
        pass

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
        response_schema: Optional[dict] = None,
    ) -> LLMResponse:
        """Generate a reply; JSON text matching response_schema when one is given."""
        pass


class GeminiClient(BaseLLMClient):
    provider = LLMProvider.GEMINI

    @property
    def model(self) -> str:
        return self.config.gemini_model

    def _get_model(self, system_prompt: str):
        import google.generativeai as genai

        genai.configure(api_key=self.config.gemini_api_key)
        return genai.GenerativeModel(self.model, system_instruction=system_prompt)

    async def generate(self, system_prompt, user_prompt, temperature, max_tokens, response_schema=None):
        model = self._get_model(system_prompt)
        generation_config: dict[str, Any] = {
            "temperature": temperature,
            "max_output_tokens": max_tokens,
        }
        if response_schema is not None:
            generation_config["response_mime_type"] = "application/json"
            generation_config["response_schema"] = response_schema

        # generate_content is synchronous
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(
            None,
            lambda: model.generate_content(user_prompt, generation_config=generation_config),
        )

        usage = getattr(response, "usage_metadata", None)
        return LLMResponse(
            content=response.text,
            model=self.model,
            provider=self.provider,
            usage={
                "prompt_tokens": usage.prompt_token_count if usage else 0,
                "completion_tokens": usage.candidates_token_count if usage else 0,
            },
        )


class AnthropicClient(BaseLLMClient):
    provider = LLMProvider.ANTHROPIC

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._client = None

    @property
    def model(self) -> str:
        return self.config.anthropic_model

    def _get_client(self):
        if self._client is None:
            import anthropic

            self._client = anthropic.AsyncAnthropic(api_key=self.config.anthropic_api_key)
        return self._client

    async def generate(self, system_prompt, user_prompt, temperature, max_tokens, response_schema=None):
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if response_schema is not None:
            kwargs["tools"] = [{
                "name": REPLY_NAME,
                "description": "Submit the next-candle signal.",
                "input_schema": response_schema,
            }]
            kwargs["tool_choice"] = {"type": "tool", "name": REPLY_NAME}

        response = await self._get_client().messages.create(**kwargs)

        # A forced tool call carries the reply as already-parsed input
        content = ""
        for block in response.content:
            if block.type == "tool_use":
                content = json.dumps(block.input)
                break
            if block.type == "text":
                content = block.text

        return LLMResponse(
            content=content,
            model=self.model,
            provider=self.provider,
            usage={
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
            },
        )


class OpenAIClient(BaseLLMClient):
    provider = LLMProvider.OPENAI

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._client = None

    @property
    def model(self) -> str:
        return self.config.openai_model

    def _get_client(self):
        if self._client is None:
            import openai

            self._client = openai.AsyncOpenAI(api_key=self.config.openai_api_key)
        return self._client

    async def generate(self, system_prompt, user_prompt, temperature, max_tokens, response_schema=None):
        kwargs: dict[str, Any] = {
            "model": self.model,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        if response_schema is not None:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {
                    "name": REPLY_NAME,
                    "schema": strict_schema(response_schema),
                    "strict": True,
                },
            }

        response = await self._get_client().chat.completions.create(**kwargs)

        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=self.model,
            provider=self.provider,
            usage={
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
            },
        )


PROVIDER_CLIENTS: dict[LLMProvider, type[BaseLLMClient]] = {
    LLMProvider.GEMINI: GeminiClient,
    LLMProvider.ANTHROPIC: AnthropicClient,
    LLMProvider.OPENAI: OpenAIClient,
}

# Fallback order after the primary provider
FALLBACK_ORDER = {
    LLMProvider.GEMINI: (LLMProvider.ANTHROPIC, LLMProvider.OPENAI),
    LLMProvider.ANTHROPIC: (LLMProvider.GEMINI, LLMProvider.OPENAI),
    LLMProvider.OPENAI: (LLMProvider.GEMINI, LLMProvider.ANTHROPIC),
}


class LLMClient:
    """
    Provider switching with a single fallback.

    Only providers with an API key are set up. With no key at all every
    call raises LLMAuthError, which the signal service reports as
    AUTH_ERROR.
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self._primary: Optional[BaseLLMClient] = None
        self._fallback: Optional[BaseLLMClient] = None

        if config.api_key_for(config.provider):
            self._primary = PROVIDER_CLIENTS[config.provider](config)
        for provider in FALLBACK_ORDER[config.provider]:
            if config.api_key_for(provider):
                self._fallback = PROVIDER_CLIENTS[provider](config)
                break

        if not self.is_configured:
            logger.warning("No LLM API keys configured. Signal generation disabled.")

    @property
    def is_configured(self) -> bool:
        return self._primary is not None or self._fallback is not None

    def get_active_provider(self) -> Optional[LLMProvider]:
        """Provider that answers the next call, if any."""
        client = self._primary or self._fallback
        return client.provider if client else None

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        response_schema: Optional[dict] = None,
    ) -> LLMResponse:
        """
        Generate a reply, falling back to the secondary provider on failure.

        Raises:
            LLMAuthError: if no provider has an API key
        """
        if not self.is_configured:
            raise LLMAuthError("LLMClient", "No LLM API key configured")

        kwargs = dict(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            temperature=temperature if temperature is not None else self.config.temperature,
            max_tokens=max_tokens if max_tokens is not None else self.config.max_tokens,
            response_schema=response_schema,
        )

        if self._primary:
            try:
                return await self._primary.generate(**kwargs)
            except Exception as e:
                if self._fallback is None:
                    logger.error(f"{self._primary.provider.value} API error: {e}")
                    raise
                logger.warning(
                    f"{self._primary.provider.value} failed: {e}, "
                    f"trying {self._fallback.provider.value}..."
                )

        return await self._fallback.generate(**kwargs)


# Singleton instance management
_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get or create LLM client singleton."""
    global _llm_client
    if _llm_client is None:
        from signalboard.core.config import settings

        config = LLMConfig(
            provider=LLMProvider(settings.llm_primary_provider),
            anthropic_api_key=settings.anthropic_api_key,
            openai_api_key=settings.openai_api_key,
            gemini_api_key=settings.gemini_api_key,
            gemini_model=settings.llm_signal_model,
            anthropic_model=settings.llm_anthropic_model,
            openai_model=settings.llm_openai_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )
        _llm_client = LLMClient(config)
    return _llm_client
