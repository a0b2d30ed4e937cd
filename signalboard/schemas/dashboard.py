"""
CONTRACT 4: Dashboard

Input: Session state
Output: One snapshot of everything the dashboard shows
"""

from typing import Optional
from pydantic import BaseModel, Field

from signalboard.schemas.market import Asset, CandleClock, FeedState
from signalboard.schemas.signal import LifecycleState, Signal, Stats


class DashboardSnapshot(BaseModel):
    """Point-in-time view of the dashboard session."""

    asset: Asset
    current_price: Optional[float] = None
    candle_count: int = Field(default=0, ge=0)
    clock: CandleClock
    feed_state: FeedState
    signal: Optional[Signal] = None
    lifecycle_state: LifecycleState
    is_analyzing: bool = False
    is_scanning: bool = False
    api_error: bool = False
    stats: Stats
    recommended_assets: list[str] = Field(default_factory=list)


class ScanResult(BaseModel):
    """Outcome of scanning the whole catalogue."""

    recommended_assets: list[str]
    scanned: int
    failed: list[str] = Field(default_factory=list)
