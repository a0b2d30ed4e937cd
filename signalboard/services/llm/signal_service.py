"""
Signal Service Implementation

Uses the LLM to call the direction of the next 1-minute candle.

CRITICAL: LLM does NO math. All numbers come from the Indicator Engine.
LLM only reads the snapshot and the price tape.
"""

import json
import logging
from typing import Any, Optional

from signalboard.core.config import settings
from signalboard.core.market_clock import get_utc_now, to_epoch_ms
from signalboard.schemas.indicators import PremiumIndicators
from signalboard.schemas.market import Candle
from signalboard.schemas.signal import (
    Signal,
    SignalType,
    SIGNAL_CATEGORY,
    ERROR_CATEGORY,
    AUTH_ERROR_PATTERN,
    RETRY_PATTERN,
)
from signalboard.services.base import LLMAuthError
from signalboard.services.llm.interface import SignalServiceInterface, SignalInput
from signalboard.services.llm.client import LLMClient, get_llm_client
from signalboard.services.llm.prompts import (
    SIGNAL_RESPONSE_SCHEMA,
    format_signal_system_prompt,
    format_signal_prompt,
)

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "Market Analysis"
DEFAULT_DESCRIPTION = "Follow the next move in line with the market trend and Fibonacci levels."
AUTH_ERROR_DESCRIPTION = "API permission error! Select a new API key."
RETRY_DESCRIPTION = "The server is not responding. Please try again."

# Error text fragments that mean the API key was rejected
AUTH_ERROR_MARKERS = ("permission", "403", "not found")


def is_auth_error(error: BaseException) -> bool:
    """Check if an LLM failure means the API key was rejected."""
    if isinstance(error, LLMAuthError):
        return True
    message = str(error).lower()
    return any(marker in message for marker in AUTH_ERROR_MARKERS)


def parse_llm_json(content: str) -> dict[str, Any]:
    """
    Parse the JSON object in an LLM reply.

    Handles markdown code fences around the object.

    Raises:
        ValueError: if the reply is not a JSON object
    """
    content = (content or "").strip()
    if content.startswith("```"):
        # Remove markdown code block
        lines = content.split("\n")
        content = "\n".join(line for line in lines[1:] if not line.startswith("```"))

    if not content:
        return {}

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"LLM returned invalid JSON: {e}")

    if not isinstance(data, dict):
        raise ValueError("LLM returned JSON that is not an object")
    return data


class SignalService(SignalServiceInterface):
    """
    Signal Service using the LLM for next-candle calls.

    Never raises on LLM failure: errors come back as "System Error" signals
    that expire quickly.
    """

    def __init__(self, llm_client: Optional[LLMClient] = None):
        self._llm_client = llm_client

    @property
    def llm_client(self) -> LLMClient:
        """Lazy initialization of LLM client."""
        if self._llm_client is None:
            self._llm_client = get_llm_client()
        return self._llm_client

    async def execute(self, input_data: SignalInput) -> Signal:
        """Generate the next-candle signal."""
        return await self.analyze_market(
            input_data.candles,
            input_data.asset_name,
            input_data.indicators,
        )

    async def analyze_market(
        self,
        candles: list[Candle],
        asset_name: str,
        indicators: Optional[PremiumIndicators],
        now_ms: Optional[int] = None,
    ) -> Signal:
        """
        Ask the LLM for a CALL/PUT/NEUTRAL call on the next candle.

        Returns an error signal (category "System Error") on any failure.
        """
        try:
            response = await self.llm_client.generate(
                system_prompt=format_signal_system_prompt(settings.signal_language),
                user_prompt=format_signal_prompt(candles, asset_name, indicators),
                temperature=settings.llm_temperature,
                response_schema=SIGNAL_RESPONSE_SCHEMA,
            )
            llm_output = parse_llm_json(response.content)
        except Exception as e:
            logger.error(f"Signal analysis failed for {asset_name}: {e}")
            return self.build_error_signal(e, now_ms)

        signal = self.build_signal(llm_output, now_ms)
        logger.info(
            f"Signal for {asset_name}: {signal.type.value} "
            f"({signal.confidence:.0f}%) {signal.pattern}"
        )
        return signal

    def build_signal(self, llm_output: dict[str, Any], now_ms: Optional[int] = None) -> Signal:
        """Build a Signal from parsed LLM output, filling defaults."""
        now_ms = now_ms if now_ms is not None else to_epoch_ms(get_utc_now())

        try:
            signal_type = SignalType(str(llm_output.get("type") or "NEUTRAL").upper())
        except ValueError:
            signal_type = SignalType.NEUTRAL

        try:
            confidence = float(llm_output.get("confidence") or settings.default_confidence)
        except (TypeError, ValueError):
            confidence = settings.default_confidence

        return Signal(
            id=f"ss-{now_ms}",
            type=signal_type,
            pattern=str(llm_output.get("pattern") or DEFAULT_PATTERN),
            category=SIGNAL_CATEGORY,
            confidence=max(0.0, min(100.0, confidence)),
            time=now_ms,
            description=str(llm_output.get("description") or DEFAULT_DESCRIPTION),
            expires_at=now_ms + settings.signal_expiry_ms,
        )

    def build_error_signal(self, error: BaseException, now_ms: Optional[int] = None) -> Signal:
        """Build the short-lived signal shown when analysis fails."""
        now_ms = now_ms if now_ms is not None else to_epoch_ms(get_utc_now())
        auth_error = is_auth_error(error)

        return Signal(
            id=f"err-{now_ms}",
            type=SignalType.NEUTRAL,
            pattern=AUTH_ERROR_PATTERN if auth_error else RETRY_PATTERN,
            category=ERROR_CATEGORY,
            confidence=0,
            time=now_ms,
            description=AUTH_ERROR_DESCRIPTION if auth_error else RETRY_DESCRIPTION,
            expires_at=now_ms + settings.error_expiry_ms,
        )

    async def health_check(self) -> bool:
        """Healthy when at least one provider has an API key."""
        return bool(self.llm_client.is_configured)


# Singleton instance
_service_instance: Optional[SignalService] = None


def get_signal_service() -> SignalService:
    """Get or create signal service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = SignalService()
    return _service_instance
