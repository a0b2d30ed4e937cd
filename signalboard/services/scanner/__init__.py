"""
Market Scanner Service

Scans the asset catalogue for strong trends with a detected chart pattern.
"""

from signalboard.services.scanner.scanner import (
    MarketScanner,
    AssetScan,
    get_scanner,
    is_recommended,
)

__all__ = [
    "MarketScanner",
    "AssetScan",
    "get_scanner",
    "is_recommended",
]
