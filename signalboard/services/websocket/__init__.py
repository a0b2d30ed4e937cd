"""
WebSocket module for real-time candle streaming.

Keeps a persistent Deriv WebSocket subscription for the selected asset.
"""

from signalboard.services.websocket.manager import (
    FeedManager,
    get_feed_manager,
)

__all__ = [
    "FeedManager",
    "get_feed_manager",
]
