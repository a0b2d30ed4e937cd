"""
CONTRACT 2: Indicator Engine

Input: list[Candle] (recent 1-minute history)
Output: PremiumIndicators

This module performs ALL mathematical calculations.
Pure Python/NumPy - NO LLM involvement.
"""

from enum import Enum
from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================


class MarketTrend(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"


class ChartPattern(str, Enum):
    NONE = "NONE"
    SYMMETRICAL_TRIANGLE = "SYMMETRICAL_TRIANGLE"
    ASCENDING_TRIANGLE = "ASCENDING_TRIANGLE"
    DESCENDING_TRIANGLE = "DESCENDING_TRIANGLE"
    ASCENDING_CHANNEL = "ASCENDING_CHANNEL"
    DESCENDING_CHANNEL = "DESCENDING_CHANNEL"


# =============================================================================
# OUTPUT: PremiumIndicators
# =============================================================================


class PremiumIndicators(BaseModel):
    """
    Indicator snapshot for the latest candle.
    Returned by: Indicator Service
    Consumed by: Signal Service (LLM prompt), Market Scanner
    """

    # Moving averages
    ema8: float
    ema21: float
    ema50: float
    ema200: float
    sma20: float

    # MACD
    macd_line: float
    macd_signal: float
    macd_hist: float

    # Ichimoku
    tenkan_sen: float
    kijun_sen: float

    # Oscillators
    stoch_k: float = Field(..., ge=0, le=100)
    rsi: float = Field(..., ge=0, le=100)
    williams_r: float = Field(..., ge=-100, le=0)

    # Pivot levels (from the previous candle)
    pivot: float
    r1: float
    r2: float
    s1: float
    s2: float

    # Bollinger Bands
    bb_upper: float
    bb_lower: float
    bb_width: float

    # Candle psychology
    is_pin_bar: bool
    is_engulfing: bool
    trend: MarketTrend
    momentum: float
    volume_delta: int

    # Volatility / structure
    atr: float = Field(..., ge=0)
    fib618: float
    fib50: float
    fib382: float
    trend_strength: float = Field(..., ge=0, description="|EMA8 - EMA21| in ATR units")
    high_slope: float
    low_slope: float
    detected_pattern: ChartPattern

    class Config:
        json_schema_extra = {
            "example": {
                "ema8": 1.08512,
                "ema21": 1.08490,
                "macd_line": 0.00011,
                "rsi": 57.3,
                "trend": "BULLISH",
                "atr": 0.00021,
                "fib618": 1.08402,
                "trend_strength": 1.05,
                "detected_pattern": "ASCENDING_CHANNEL",
            }
        }
