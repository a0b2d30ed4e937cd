"""
Candle Buffer

Merges the provider's history snapshot and live OHLC updates into a bounded,
time-ordered list of 1-minute candles.
"""

from typing import Any, Optional

from signalboard.schemas.market import Candle

# The provider streams no volume for these instruments
DEFAULT_VOLUME = 100


def parse_history_candle(raw: dict[str, Any]) -> Candle:
    """Parse one entry of a `candles` history reply."""
    return Candle(
        time=int(raw["epoch"]) * 1000,
        open=float(raw["open"]),
        high=float(raw["high"]),
        low=float(raw["low"]),
        close=float(raw["close"]),
        volume=DEFAULT_VOLUME,
    )


def parse_ohlc_update(raw: dict[str, Any]) -> Candle:
    """Parse the `ohlc` body of a streaming update."""
    return Candle(
        time=int(raw["open_time"]) * 1000,
        open=float(raw["open"]),
        high=float(raw["high"]),
        low=float(raw["low"]),
        close=float(raw["close"]),
        volume=DEFAULT_VOLUME,
    )


class CandleBuffer:
    """
    Bounded candle history for one asset.

    - A history snapshot replaces everything.
    - A live update for the forming candle (same open time as the last one)
      replaces it; any other update is appended.
    - Live updates arriving before the first snapshot are dropped.
    - Only the newest `max_size` candles are kept.
    """

    def __init__(self, max_size: int = 300):
        self.max_size = max_size
        self._candles: list[Candle] = []
        self.current_price: Optional[float] = None

    def __len__(self) -> int:
        return len(self._candles)

    @property
    def candles(self) -> list[Candle]:
        return list(self._candles)

    @property
    def last(self) -> Optional[Candle]:
        return self._candles[-1] if self._candles else None

    def load_history(self, candles: list[Candle]) -> None:
        """Replace the buffer with a history snapshot."""
        self._candles = list(candles)[-self.max_size:]
        if self._candles and self.current_price is None:
            self.current_price = self._candles[-1].close

    def apply_update(self, candle: Candle) -> bool:
        """
        Merge a live update.

        Returns True if the buffer changed.
        """
        self.current_price = candle.close

        if not self._candles:
            return False

        if self._candles[-1].time == candle.time:
            self._candles[-1] = candle
        else:
            self._candles.append(candle)
            if len(self._candles) > self.max_size:
                self._candles = self._candles[-self.max_size:]
        return True

    def clear(self) -> None:
        self._candles = []
        self.current_price = None
