"""
CONTRACT 1: Market Feed

Input: Asset selection
Output: Candle stream

This module describes the instruments offered by the tick provider and the
1-minute candles streamed for them.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================


class AssetCategory(str, Enum):
    FOREX = "Forex"
    CRYPTO = "Crypto"
    SYNTHETIC = "Synthetic"
    STOCKS = "Stocks"


class FeedState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    ERROR = "error"


# =============================================================================
# INSTRUMENTS
# =============================================================================


class Asset(BaseModel):
    """A tradable instrument on the tick provider."""

    id: str = Field(..., description="Provider symbol (e.g. frxEURUSD, R_100)")
    name: str
    icon: str
    precision: int = Field(..., ge=0, le=8, description="Decimal places for display")
    timezone: str = Field(..., description="IANA timezone for the market clock")
    category: AssetCategory


class SelectAssetRequest(BaseModel):
    """Request to switch the streamed instrument."""

    asset_id: str = Field(..., min_length=1)


# =============================================================================
# CANDLES
# =============================================================================


class Candle(BaseModel):
    """Single 1-minute OHLC candle."""

    time: int = Field(..., description="Candle open time, epoch milliseconds")
    open: float
    high: float
    low: float
    close: float
    volume: int = Field(default=100, ge=0)

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def body(self) -> float:
        return abs(self.close - self.open)


class CandleSeries(BaseModel):
    """Candle history for one asset."""

    asset_id: str
    candles: list[Candle]
    current_price: Optional[float] = None


# =============================================================================
# CLOCK
# =============================================================================


class CandleClock(BaseModel):
    """Wall-clock view of the current candle."""

    market_time: str = Field(..., description="HH:MM:SS in the asset timezone")
    timezone: str
    countdown: int = Field(..., ge=0, le=59, description="Seconds until next candle")
    is_closing: bool = Field(..., description="Final seconds of the candle")
    candle_open_time: int
    next_candle_open_time: int
