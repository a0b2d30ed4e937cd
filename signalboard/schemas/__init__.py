"""
SignalBoard Schema Contracts

This module defines all JSON contracts between system components.
These are the authoritative interfaces - all modules must conform to these schemas.
"""

from signalboard.schemas.market import (
    Asset,
    AssetCategory,
    Candle,
    CandleClock,
    CandleSeries,
    FeedState,
    SelectAssetRequest,
)
from signalboard.schemas.indicators import (
    ChartPattern,
    MarketTrend,
    PremiumIndicators,
)
from signalboard.schemas.signal import (
    LifecycleState,
    Signal,
    SignalRecord,
    SignalType,
    Stats,
    VoteRequest,
    VoteResult,
)
from signalboard.schemas.dashboard import (
    DashboardSnapshot,
    ScanResult,
)

__all__ = [
    # Market
    "Asset",
    "AssetCategory",
    "Candle",
    "CandleClock",
    "CandleSeries",
    "FeedState",
    "SelectAssetRequest",
    # Indicators
    "ChartPattern",
    "MarketTrend",
    "PremiumIndicators",
    # Signal
    "LifecycleState",
    "Signal",
    "SignalRecord",
    "SignalType",
    "Stats",
    "VoteRequest",
    "VoteResult",
    # Dashboard
    "DashboardSnapshot",
    "ScanResult",
]
