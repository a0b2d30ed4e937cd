"""
Feed Manager for real-time candle data.

Keeps one Deriv WebSocket subscription open for the selected asset.

Features:
- Auto-reconnect with exponential backoff
- Asset switching (close the socket, subscribe on a fresh one)
- Candle buffering and price caching
"""

import asyncio
import logging
from typing import Optional, List, Callable

from signalboard.core.config import settings
from signalboard.schemas.market import Candle, FeedState
from signalboard.services.cache.redis_client import get_price_cache
from signalboard.services.data_ingestion.candles import CandleBuffer
from signalboard.services.data_ingestion.deriv_adapter import DerivClient

logger = logging.getLogger(__name__)


class FeedManager:
    """
    Manages the candle subscription for the selected asset.

    Usage:
        manager = FeedManager()
        await manager.start("frxEURUSD")
        await manager.switch_asset("R_100")
        # Candles accumulate in manager.buffer; callbacks fire on each update
        await manager.stop()
    """

    def __init__(
        self,
        client_factory: Callable[[], DerivClient] = DerivClient,
        history_count: Optional[int] = None,
        max_reconnect_delay: Optional[int] = None,
    ):
        self._client_factory = client_factory
        self._history_count = history_count or settings.history_count
        self._state = FeedState.DISCONNECTED
        self._asset_id: Optional[str] = None
        self._client: Optional[DerivClient] = None
        self._feed_task: Optional[asyncio.Task] = None
        self._update_callbacks: List[Callable] = []
        self._reconnect_delay = 1  # Start with 1 second
        self._max_reconnect_delay = max_reconnect_delay or settings.feed_max_reconnect_delay
        self._running = False

        self.buffer = CandleBuffer(max_size=self._history_count)

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == FeedState.CONNECTED

    @property
    def asset_id(self) -> Optional[str]:
        return self._asset_id

    @property
    def candles(self) -> list[Candle]:
        return self.buffer.candles

    @property
    def current_price(self) -> Optional[float]:
        return self.buffer.current_price

    async def start(self, asset_id: Optional[str] = None) -> bool:
        """Start streaming candles for an asset."""
        if asset_id:
            self._asset_id = asset_id

        if self._running:
            logger.warning("Feed manager already running")
            return True

        if not self._asset_id:
            logger.error("Feed manager started without an asset")
            return False

        self._running = True
        self._state = FeedState.CONNECTING

        self._feed_task = asyncio.create_task(self._connection_loop(self._asset_id))
        logger.info(f"Feed manager started for {self._asset_id}")
        return True

    async def stop(self) -> None:
        """Stop streaming and close the socket."""
        self._running = False
        await self._cancel_feed()
        self._state = FeedState.DISCONNECTED
        logger.info("Feed manager stopped")

    async def switch_asset(self, asset_id: str) -> None:
        """
        Stream a different asset.

        The buffer is cleared immediately; the new history arrives on a
        fresh connection.
        """
        if asset_id == self._asset_id and self._feed_task and not self._feed_task.done():
            return

        logger.info(f"Switching feed: {self._asset_id} -> {asset_id}")
        self._asset_id = asset_id
        self.buffer.clear()

        if not self._running:
            return

        await self._cancel_feed()
        self._reconnect_delay = 1
        self._state = FeedState.CONNECTING
        self._feed_task = asyncio.create_task(self._connection_loop(asset_id))

    def add_update_callback(self, callback: Callable) -> None:
        """Add a callback called with (asset_id, candle) on each update."""
        self._update_callbacks.append(callback)

    def remove_update_callback(self, callback: Callable) -> None:
        """Remove an update callback."""
        if callback in self._update_callbacks:
            self._update_callbacks.remove(callback)

    # ============ Connection Loop ============

    async def _cancel_feed(self) -> None:
        if self._feed_task:
            self._feed_task.cancel()
            try:
                await self._feed_task
            except asyncio.CancelledError:
                pass
            self._feed_task = None

        await self._close_client()

    async def _close_client(self) -> None:
        if self._client:
            try:
                await self._client.close()
            except Exception as e:
                logger.debug(f"Error closing feed client: {e}")
            self._client = None

    async def _connection_loop(self, asset_id: str) -> None:
        """Main connection loop with auto-reconnect."""
        while self._running and asset_id == self._asset_id:
            try:
                self._client = self._client_factory()
                connected = await self._client.connect()
                if connected:
                    subscribed = await self._client.subscribe_candles(asset_id, self._history_count)
                    if subscribed:
                        self._state = FeedState.CONNECTED
                        self._reconnect_delay = 1  # Reset delay on success

                        await self._client.listen(
                            on_history=lambda candles: self._on_history(asset_id, candles),
                            on_update=lambda candle: self._on_update(asset_id, candle),
                        )

                await self._close_client()

                if not self._running:
                    break

                self._state = FeedState.RECONNECTING
                logger.info(f"Reconnecting in {self._reconnect_delay}s...")
                await asyncio.sleep(self._reconnect_delay)
                self._reconnect_delay = min(
                    self._reconnect_delay * 2,
                    self._max_reconnect_delay,
                )

            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Feed connection loop error: {e}")
                self._state = FeedState.ERROR
                await self._close_client()
                await asyncio.sleep(self._reconnect_delay)

    # ============ Message Handling ============

    async def _on_history(self, asset_id: str, candles: list[Candle]) -> None:
        """Replace the buffer with a history snapshot."""
        if asset_id != self._asset_id:
            return

        self.buffer.load_history(candles)
        logger.info(f"Loaded {len(candles)} candles for {asset_id}")

        cache = get_price_cache()
        await cache.cache_candles(asset_id, self.buffer.candles)
        if self.buffer.last:
            await self._notify(asset_id, self.buffer.last)

    async def _on_update(self, asset_id: str, candle: Candle) -> None:
        """Merge a live update, cache it, and notify callbacks."""
        if asset_id != self._asset_id:
            return

        self.buffer.apply_update(candle)

        cache = get_price_cache()
        await cache.set_ltp(asset_id, candle.close)
        await cache.set_current_candle(asset_id, candle)

        await self._notify(asset_id, candle)

    async def _notify(self, asset_id: str, candle: Candle) -> None:
        for callback in self._update_callbacks:
            try:
                if asyncio.iscoroutinefunction(callback):
                    await callback(asset_id, candle)
                else:
                    callback(asset_id, candle)
            except Exception as e:
                logger.debug(f"Update callback error: {e}")


# Singleton instance
_feed_manager: Optional[FeedManager] = None


def get_feed_manager() -> FeedManager:
    """Get the feed manager singleton."""
    global _feed_manager
    if _feed_manager is None:
        _feed_manager = FeedManager()
    return _feed_manager
