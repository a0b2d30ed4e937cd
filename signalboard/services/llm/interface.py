"""
LLM Service Interfaces

Defines the contract for the signal layer.
"""

from abc import abstractmethod
from dataclasses import dataclass
from typing import Optional

from signalboard.services.base import BaseService
from signalboard.schemas.indicators import PremiumIndicators
from signalboard.schemas.market import Candle
from signalboard.schemas.signal import Signal


@dataclass
class SignalInput:
    """Input for the signal layer."""

    candles: list[Candle]
    asset_name: str
    indicators: Optional[PremiumIndicators] = None


class SignalServiceInterface(BaseService[SignalInput, Signal]):
    """
    Signal Service Contract.

    INPUT: SignalInput
        - candles: Recent 1-minute candles (the last 30 form the price tape)
        - asset_name: Display name of the instrument
        - indicators: Premium indicator snapshot, None while warming up

    OUTPUT: Signal
        - type: CALL / PUT / NEUTRAL for the NEXT candle
        - pattern, confidence, description from the LLM
        - expires_at: one candle after creation

    RULES:
        - NEVER raises on LLM failure; returns a "System Error" signal instead
        - Rejected API keys produce the AUTH_ERROR pattern
    """

    @property
    def name(self) -> str:
        return "SignalService"

    @abstractmethod
    async def execute(self, input_data: SignalInput) -> Signal:
        """Generate the next-candle signal."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check that an LLM provider is configured."""
        pass
