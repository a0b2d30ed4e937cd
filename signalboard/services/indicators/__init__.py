"""
Indicator Engine Service

CONTRACT:
    Input:  list[Candle] (1-minute history)
    Output: PremiumIndicators

RESPONSIBILITIES:
    - Moving averages (EMA 8/21/50/200, SMA 20) and MACD
    - Oscillators (RSI, Stochastic %K, Williams %R)
    - Ichimoku Tenkan/Kijun, pivot levels, Fibonacci retracement
    - Volatility (ATR, Bollinger Bands) and trend strength
    - Candle psychology (pin bar, engulfing) and channel/triangle shape

PURE PYTHON - No LLM involvement.
Uses NumPy for calculations.
All math is deterministic and reproducible.
"""

from signalboard.services.indicators.interface import IndicatorServiceInterface
from signalboard.services.indicators.service import (
    IndicatorService,
    calculate_premium_indicators,
    get_indicator_service,
)

__all__ = [
    "IndicatorServiceInterface",
    "IndicatorService",
    "calculate_premium_indicators",
    "get_indicator_service",
]
