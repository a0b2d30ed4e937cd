"""
Technical Indicator Calculations

Pure Python/NumPy implementations of technical indicators.
NO LLM INVOLVEMENT - All math is deterministic.
"""

import numpy as np
from typing import Optional


# =============================================================================
# MOVING AVERAGES
# =============================================================================


def sma(data: np.ndarray, period: int) -> np.ndarray:
    """Simple Moving Average."""
    if len(data) < period:
        return np.full(len(data), np.nan)

    result = np.full(len(data), np.nan)
    for i in range(period - 1, len(data)):
        result[i] = np.mean(data[i - period + 1 : i + 1])
    return result


def ema(data: np.ndarray, period: int) -> np.ndarray:
    """
    Exponential Moving Average seeded with the first value.

    The series is defined everywhere, even with fewer points than the
    period, so EMA 200 still has a value on a short history.
    """
    multiplier = 2 / (period + 1)

    result = np.full(len(data), np.nan)
    if len(data) == 0:
        return result

    result[0] = data[0]
    for i in range(1, len(data)):
        result[i] = (data[i] - result[i - 1]) * multiplier + result[i - 1]
    return result


# =============================================================================
# MOMENTUM INDICATORS
# =============================================================================


def rsi(closes: np.ndarray, period: int = 14) -> np.ndarray:
    """Relative Strength Index (Wilder smoothing)."""
    if len(closes) < period + 1:
        return np.full(len(closes), np.nan)

    # Calculate price changes
    deltas = np.diff(closes)

    # Separate gains and losses
    gains = np.where(deltas > 0, deltas, 0)
    losses = np.where(deltas < 0, -deltas, 0)

    # First average
    avg_gain = np.mean(gains[:period])
    avg_loss = np.mean(losses[:period])

    result = np.full(len(closes), np.nan)

    # First RSI
    if avg_loss == 0:
        result[period] = 100
    else:
        rs = avg_gain / avg_loss
        result[period] = 100 - (100 / (1 + rs))

    # Subsequent RSI values using smoothed averages
    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

        if avg_loss == 0:
            result[i + 1] = 100
        else:
            rs = avg_gain / avg_loss
            result[i + 1] = 100 - (100 / (1 + rs))

    return result


def macd(
    closes: np.ndarray,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    MACD (Moving Average Convergence Divergence).

    Returns: (macd_line, signal_line, histogram)
    """
    fast_ema = ema(closes, fast_period)
    slow_ema = ema(closes, slow_period)

    macd_line = fast_ema - slow_ema

    # Signal line is EMA of the MACD line
    signal_line = ema(macd_line, signal_period)

    # Histogram
    histogram = macd_line - signal_line

    return macd_line, signal_line, histogram


def stochastic(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    k_period: int = 14,
) -> np.ndarray:
    """Stochastic Oscillator %K."""
    if len(closes) < k_period:
        return np.full(len(closes), np.nan)

    k = np.full(len(closes), np.nan)

    for i in range(k_period - 1, len(closes)):
        highest_high = np.max(highs[i - k_period + 1 : i + 1])
        lowest_low = np.min(lows[i - k_period + 1 : i + 1])

        if highest_high == lowest_low:
            k[i] = 50
        else:
            k[i] = ((closes[i] - lowest_low) / (highest_high - lowest_low)) * 100

    return k


def williams_r(
    highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int = 14
) -> np.ndarray:
    """Williams %R."""
    if len(closes) < period:
        return np.full(len(closes), np.nan)

    result = np.full(len(closes), np.nan)

    for i in range(period - 1, len(closes)):
        highest_high = np.max(highs[i - period + 1 : i + 1])
        lowest_low = np.min(lows[i - period + 1 : i + 1])

        if highest_high == lowest_low:
            result[i] = -50
        else:
            result[i] = ((highest_high - closes[i]) / (highest_high - lowest_low)) * -100

    return result


# =============================================================================
# VOLATILITY INDICATORS
# =============================================================================


def true_range(
    highs: np.ndarray, lows: np.ndarray, closes: np.ndarray
) -> np.ndarray:
    """True Range; the first bar has no previous close and uses high - low."""
    tr = np.zeros(len(closes))
    if len(closes) == 0:
        return tr

    tr[0] = highs[0] - lows[0]
    for i in range(1, len(closes)):
        tr[i] = max(
            highs[i] - lows[i],
            abs(highs[i] - closes[i - 1]),
            abs(lows[i] - closes[i - 1]),
        )
    return tr


def window_atr(
    highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int = 14
) -> float:
    """
    Average True Range over the last `period` bars only.

    The window is taken in isolation, so its first bar contributes
    high - low. The sum is always divided by `period`.
    """
    tr = true_range(highs[-period:], lows[-period:], closes[-period:])
    return float(np.sum(tr) / period)


def bollinger_bands(
    closes: np.ndarray, period: int = 20, std_dev: float = 2.0
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Bollinger Bands (population standard deviation).

    Returns: (upper, middle, lower, std)
    """
    middle = sma(closes, period)

    # Standard deviation
    std = np.full(len(closes), np.nan)
    for i in range(period - 1, len(closes)):
        std[i] = np.std(closes[i - period + 1 : i + 1])

    upper = middle + (std_dev * std)
    lower = middle - (std_dev * std)

    return upper, middle, lower, std


# =============================================================================
# TREND / STRUCTURE
# =============================================================================


def ichimoku_line(highs: np.ndarray, lows: np.ndarray, period: int) -> float:
    """Midpoint of the highest high and lowest low over the last `period` bars."""
    return float((np.max(highs[-period:]) + np.min(lows[-period:])) / 2)


def linear_regression_slope(data: np.ndarray) -> float:
    """Least-squares slope of data against its index (0, 1, 2, ...)."""
    n = len(data)
    if n < 2:
        return 0.0

    x = np.arange(n, dtype=float)
    sum_x = np.sum(x)
    sum_y = np.sum(data)
    sum_xy = np.sum(x * data)
    sum_x2 = np.sum(x * x)

    return float((n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x))


def classify_channel(high_slope: float, low_slope: float, threshold: float = 0.0001) -> str:
    """
    Classify the shape traced by recent highs and lows.

    Rules are checked in order; the first match wins.
    """
    if high_slope < -threshold and low_slope > threshold:
        return "SYMMETRICAL_TRIANGLE"
    if abs(high_slope) < threshold and low_slope > threshold:
        return "ASCENDING_TRIANGLE"
    if high_slope < -threshold and abs(low_slope) < threshold:
        return "DESCENDING_TRIANGLE"
    if high_slope > threshold and low_slope > threshold:
        return "ASCENDING_CHANNEL"
    if high_slope < -threshold and low_slope < -threshold:
        return "DESCENDING_CHANNEL"
    return "NONE"


# =============================================================================
# SUPPORT/RESISTANCE
# =============================================================================


def find_pivot_points(high: float, low: float, close: float) -> dict[str, float]:
    """Standard floor pivots from one bar's high, low and close."""
    pivot = (high + low + close) / 3
    return {
        "pivot": pivot,
        "r1": (2 * pivot) - low,
        "r2": pivot + (high - low),
        "s1": (2 * pivot) - high,
        "s2": pivot - (high - low),
    }


def fibonacci_retracement(
    highs: np.ndarray,
    lows: np.ndarray,
    lookback: int = 50,
    ratios: tuple[float, ...] = (0.382, 0.5, 0.618),
) -> dict[float, float]:
    """
    Retracement levels measured down from the recent high.

    Returns: {ratio: price}
    """
    recent_high = float(np.max(highs[-lookback:]))
    recent_low = float(np.min(lows[-lookback:]))
    price_range = recent_high - recent_low

    return {ratio: recent_high - (price_range * ratio) for ratio in ratios}


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_last_valid(arr: np.ndarray) -> Optional[float]:
    """Get last non-NaN value from array."""
    valid = arr[~np.isnan(arr)]
    return float(valid[-1]) if len(valid) > 0 else None
