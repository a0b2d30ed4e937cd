"""
Data Ingestion Service

CONTRACT:
    Input:  Asset id
    Output: 1-minute candles (history snapshot + live updates)

RESPONSIBILITIES:
    - Hold the asset catalogue
    - Talk to the Deriv WebSocket API (history + subscription)
    - Merge live updates into a bounded candle buffer

NO LLM INVOLVEMENT - Pure data fetching and transformation.
"""

from signalboard.services.data_ingestion.assets import (
    ASSETS,
    get_all_assets,
    get_asset,
    resolve_asset,
)
from signalboard.services.data_ingestion.candles import CandleBuffer
from signalboard.services.data_ingestion.deriv_adapter import (
    DerivClient,
    build_history_request,
    parse_message,
)

__all__ = [
    "ASSETS",
    "get_all_assets",
    "get_asset",
    "resolve_asset",
    "CandleBuffer",
    "DerivClient",
    "build_history_request",
    "parse_message",
]
