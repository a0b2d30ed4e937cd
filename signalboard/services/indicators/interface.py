"""
Indicator Engine Service Interface

Defines the contract for the indicator calculation layer.
"""

from abc import abstractmethod
from typing import Optional

from signalboard.services.base import BaseService
from signalboard.schemas.market import Candle
from signalboard.schemas.indicators import PremiumIndicators


class IndicatorServiceInterface(BaseService[list[Candle], Optional[PremiumIndicators]]):
    """
    Indicator Engine Service Contract.

    INPUT: list[Candle]
        - Recent 1-minute candles, oldest first

    OUTPUT: Optional[PremiumIndicators]
        - None while the history is too short to be meaningful
        - Otherwise the full indicator snapshot for the latest candle
    """

    @property
    def name(self) -> str:
        return "IndicatorService"

    @abstractmethod
    async def execute(self, input_data: list[Candle]) -> Optional[PremiumIndicators]:
        """Calculate indicators for a candle history."""
        pass

    @abstractmethod
    def calculate(self, candles: list[Candle]) -> Optional[PremiumIndicators]:
        """Synchronous variant of execute for callers outside the event loop."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Indicator service is always healthy (pure computation)."""
        pass
