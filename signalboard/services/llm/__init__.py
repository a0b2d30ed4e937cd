"""
LLM Signal Service

CONTRACT:
    Input:  Candles + PremiumIndicators (or None while warming up)
    Output: Signal (CALL / PUT / NEUTRAL for the next 1-minute candle)

RESPONSIBILITIES:
    - Build the signal prompt (indicator snapshot + price tape)
    - Call the configured LLM provider with fallback
    - Parse the JSON reply into a Signal with defaults
    - Turn failures into short-lived "System Error" signals

CRITICAL RULES:
    - LLM does NO math - all numbers come from Indicator Engine
    - Rejected API keys surface as the AUTH_ERROR pattern
"""

from signalboard.services.llm.interface import (
    SignalServiceInterface,
    SignalInput,
)
from signalboard.services.llm.client import (
    LLMClient,
    LLMConfig,
    LLMProvider,
    LLMResponse,
    get_llm_client,
)
from signalboard.services.llm.signal_service import (
    SignalService,
    get_signal_service,
    is_auth_error,
    parse_llm_json,
)

__all__ = [
    # Interfaces
    "SignalServiceInterface",
    "SignalInput",
    # Client
    "LLMClient",
    "LLMConfig",
    "LLMProvider",
    "LLMResponse",
    "get_llm_client",
    # Services
    "SignalService",
    "get_signal_service",
    "is_auth_error",
    "parse_llm_json",
]
