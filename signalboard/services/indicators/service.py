"""
Indicator Engine Service Implementation

Calculates the premium indicator snapshot from 1-minute candles.
NO LLM INVOLVEMENT - Pure Python/NumPy calculations.
"""

import logging
from typing import Optional
import numpy as np

from signalboard.core.config import settings
from signalboard.schemas.market import Candle
from signalboard.schemas.indicators import (
    PremiumIndicators,
    MarketTrend,
    ChartPattern,
)
from signalboard.services.indicators.interface import IndicatorServiceInterface
from signalboard.services.indicators.calculations import (
    ema,
    rsi,
    macd,
    stochastic,
    williams_r,
    window_atr,
    bollinger_bands,
    ichimoku_line,
    linear_regression_slope,
    classify_channel,
    find_pivot_points,
    fibonacci_retracement,
    get_last_valid,
)

logger = logging.getLogger(__name__)

PATTERN_SLOPE_THRESHOLD = 0.0001
PIN_BAR_WICK_RATIO = 1.5
# SMA 20 / Bollinger need a full window
MIN_HISTORY = 20


def _candles_to_arrays(candles: list[Candle]) -> tuple:
    """Convert candle list to numpy arrays."""
    opens = np.array([c.open for c in candles], dtype=float)
    highs = np.array([c.high for c in candles], dtype=float)
    lows = np.array([c.low for c in candles], dtype=float)
    closes = np.array([c.close for c in candles], dtype=float)
    volumes = np.array([c.volume for c in candles], dtype=float)
    return opens, highs, lows, closes, volumes


def _clamp(value: float, low: float, high: float) -> float:
    # A feed bar can close outside its own high/low
    return min(max(value, low), high)


def calculate_premium_indicators(
    candles: list[Candle],
    min_candles: Optional[int] = None,
) -> Optional[PremiumIndicators]:
    """
    Calculate the full indicator snapshot for the latest candle.

    Returns None when fewer than `min_candles` candles are available.
    EMAs are seeded with the first close so that long periods (EMA 200)
    still produce a value on a short history.
    """
    if min_candles is None:
        min_candles = settings.min_candles_for_indicators
    if len(candles) < max(min_candles, MIN_HISTORY):
        return None

    _, highs, lows, closes, _ = _candles_to_arrays(candles)
    last = candles[-1]
    prev = candles[-2]

    ema8 = float(ema(closes, 8)[-1])
    ema21 = float(ema(closes, 21)[-1])
    ema50 = float(ema(closes, 50)[-1])
    ema200 = float(ema(closes, 200)[-1])

    macd_arr, signal_arr, hist_arr = macd(closes, 12, 26, 9)
    macd_line = float(macd_arr[-1])
    macd_signal = float(signal_arr[-1])
    macd_hist = float(hist_arr[-1])

    tenkan_sen = ichimoku_line(highs, lows, 9)
    kijun_sen = ichimoku_line(highs, lows, 26)

    rsi_val = get_last_valid(rsi(closes, 14))
    stoch_k = get_last_valid(stochastic(highs, lows, closes, 14))
    wr = get_last_valid(williams_r(highs, lows, closes, 14))

    pivots = find_pivot_points(prev.high, prev.low, prev.close)

    _, middle, _, std = bollinger_bands(closes, 20, 2.0)
    sma20 = get_last_valid(middle)
    std_dev = get_last_valid(std)

    atr_val = window_atr(highs, lows, closes, 14)

    fib = fibonacci_retracement(highs, lows, lookback=50)

    trend_strength = abs(ema8 - ema21) / (atr_val or 1)

    high_slope = linear_regression_slope(highs[-20:])
    low_slope = linear_regression_slope(lows[-20:])
    pattern = classify_channel(high_slope, low_slope, PATTERN_SLOPE_THRESHOLD)

    upper_wick = abs(last.high - max(last.open, last.close))

    return PremiumIndicators(
        ema8=ema8,
        ema21=ema21,
        ema50=ema50,
        ema200=ema200,
        sma20=sma20,
        macd_line=macd_line,
        macd_signal=macd_signal,
        macd_hist=macd_hist,
        tenkan_sen=tenkan_sen,
        kijun_sen=kijun_sen,
        stoch_k=_clamp(stoch_k if stoch_k is not None else 50.0, 0.0, 100.0),
        rsi=rsi_val if rsi_val is not None else 50.0,
        williams_r=_clamp(wr if wr is not None else -50.0, -100.0, 0.0),
        pivot=pivots["pivot"],
        r1=pivots["r1"],
        r2=pivots["r2"],
        s1=pivots["s1"],
        s2=pivots["s2"],
        bb_upper=sma20 + std_dev * 2,
        bb_lower=sma20 - std_dev * 2,
        bb_width=(std_dev * 4) / (sma20 or 1),
        is_pin_bar=upper_wick > last.body * PIN_BAR_WICK_RATIO,
        is_engulfing=last.body > prev.body,
        trend=MarketTrend.BULLISH if ema8 > ema21 else MarketTrend.BEARISH,
        momentum=float(closes[-1] - closes[-10]),
        volume_delta=last.volume if last.close > last.open else -last.volume,
        atr=atr_val,
        fib618=fib[0.618],
        fib50=fib[0.5],
        fib382=fib[0.382],
        trend_strength=trend_strength,
        high_slope=high_slope,
        low_slope=low_slope,
        detected_pattern=ChartPattern(pattern),
    )


class IndicatorService(IndicatorServiceInterface):
    """
    Indicator Engine Service.

    Calculates technical indicators for market analysis.
    All calculations are deterministic and reproducible.
    """

    def __init__(self, min_candles: Optional[int] = None):
        self._min_candles = min_candles

    @property
    def name(self) -> str:
        return "IndicatorService"

    async def execute(self, input_data: list[Candle]) -> Optional[PremiumIndicators]:
        """Calculate indicators for a candle history."""
        return self.calculate(input_data)

    def calculate(self, candles: list[Candle]) -> Optional[PremiumIndicators]:
        indicators = calculate_premium_indicators(candles, self._min_candles)
        if indicators is None:
            logger.debug(f"Indicators warming up: {len(candles)} candles")
        return indicators

    async def health_check(self) -> bool:
        """Indicator service is always healthy (pure computation)."""
        return True


# Singleton instance
_service_instance: Optional[IndicatorService] = None


def get_indicator_service() -> IndicatorService:
    """Get or create indicator service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = IndicatorService()
    return _service_instance
