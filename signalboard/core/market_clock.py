"""
Market Clock Utility

Wall-clock helpers for 1-minute candles: the per-asset market time and the
countdown to the next candle open.
"""

from datetime import datetime, timezone
from typing import Optional
import pytz

from signalboard.schemas.market import CandleClock

CANDLE_SECONDS = 60
CLOSING_THRESHOLD_SECONDS = 10


def get_utc_now() -> datetime:
    """Get current time in UTC."""
    return datetime.now(timezone.utc)


def _ensure_aware(dt: Optional[datetime]) -> datetime:
    if dt is None:
        return get_utc_now()
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_epoch_ms(dt: datetime) -> int:
    """Convert a datetime to epoch milliseconds."""
    return int(_ensure_aware(dt).timestamp() * 1000)


def get_countdown(dt: Optional[datetime] = None) -> int:
    """
    Seconds left in the current 1-minute candle.

    Ranges 0-59: at second zero the new candle has just opened, which is
    reported as 0 rather than 60.
    """
    seconds = _ensure_aware(dt).second
    remaining = CANDLE_SECONDS - seconds
    return 0 if remaining == CANDLE_SECONDS else remaining


def get_market_time(asset_timezone: str, dt: Optional[datetime] = None) -> str:
    """Get HH:MM:SS (24h) in the asset's timezone."""
    tz = pytz.timezone(asset_timezone)
    return _ensure_aware(dt).astimezone(tz).strftime("%H:%M:%S")


def get_candle_open_ms(dt: Optional[datetime] = None) -> int:
    """Open time (epoch ms) of the candle containing dt."""
    ms = to_epoch_ms(_ensure_aware(dt))
    return ms - (ms % (CANDLE_SECONDS * 1000))


def get_next_candle_open_ms(dt: Optional[datetime] = None) -> int:
    """Open time (epoch ms) of the candle after the one containing dt."""
    return get_candle_open_ms(dt) + CANDLE_SECONDS * 1000


def get_candle_clock(asset_timezone: str, dt: Optional[datetime] = None) -> CandleClock:
    """Get the market clock for an asset."""
    now = _ensure_aware(dt)
    countdown = get_countdown(now)

    return CandleClock(
        market_time=get_market_time(asset_timezone, now),
        timezone=asset_timezone,
        countdown=countdown,
        is_closing=countdown <= CLOSING_THRESHOLD_SECONDS,
        candle_open_time=get_candle_open_ms(now),
        next_candle_open_time=get_next_candle_open_ms(now),
    )
