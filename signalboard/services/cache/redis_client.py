"""
Redis cache client for real-time price data.

Provides fast reads of the last price and the forming candle per asset.
Also caches candle histories fetched by the scanner.
"""

import json
import logging
import time
from typing import Optional, Dict, List, Any

import redis.asyncio as redis

from signalboard.core.config import settings
from signalboard.schemas.market import Candle

logger = logging.getLogger(__name__)

# Global Redis connection pool
_redis_pool: Optional[redis.Redis] = None


async def init_redis() -> Optional[redis.Redis]:
    """
    Initialize Redis connection pool.
    Called on application startup.
    """
    global _redis_pool

    if _redis_pool is not None:
        return _redis_pool

    try:
        _redis_pool = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        # Test connection
        await _redis_pool.ping()
        logger.info(f"Redis connected: {settings.redis_url}")
        return _redis_pool
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}. Using in-memory fallback.")
        _redis_pool = None
        return None


async def close_redis() -> None:
    """Close Redis connection pool."""
    global _redis_pool
    if _redis_pool:
        await _redis_pool.aclose()
        _redis_pool = None
        logger.info("Redis connection closed")


def get_redis() -> Optional[redis.Redis]:
    """Get the Redis connection pool."""
    return _redis_pool


class PriceCache:
    """
    Redis-based cache for real-time price data.

    Keys:
    - ltp:{asset_id} → float (last price)
    - candle:{asset_id} → JSON Candle (forming candle)
    - candles:{asset_id} → JSON list of Candle (history snapshot)
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None):
        self._redis = redis_client
        # In-memory fallback when Redis is unavailable
        self._memory_cache: Dict[str, Any] = {}

    @property
    def redis(self) -> Optional[redis.Redis]:
        return self._redis or _redis_pool

    def _memory_get(self, key: str) -> Optional[str]:
        """Fallback to memory cache."""
        entry = self._memory_cache.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self._memory_cache[key]
            return None
        return value

    def _memory_set(self, key: str, value: str, ex: Optional[int] = None):
        """Fallback to memory cache."""
        expires_at = time.monotonic() + ex if ex else None
        self._memory_cache[key] = (value, expires_at)

    async def _set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        if self.redis:
            try:
                await self.redis.set(key, value, ex=ex)
                return True
            except Exception as e:
                logger.debug(f"Redis set {key} failed: {e}")

        self._memory_set(key, value, ex)
        return True

    async def _get(self, key: str) -> Optional[str]:
        if self.redis:
            try:
                return await self.redis.get(key)
            except Exception as e:
                logger.debug(f"Redis get {key} failed: {e}")

        return self._memory_get(key)

    # ============ LTP (Last Traded Price) ============

    async def set_ltp(self, asset_id: str, price: float) -> bool:
        """Store the last price for an asset."""
        return await self._set(f"ltp:{asset_id}", str(price))

    async def get_ltp(self, asset_id: str) -> Optional[float]:
        """
        Get the last price for an asset.
        Returns None if not cached.
        """
        value = await self._get(f"ltp:{asset_id}")
        return float(value) if value else None

    # ============ Current Candle (Real-Time) ============

    async def set_current_candle(self, asset_id: str, candle: Candle) -> bool:
        """Store the forming candle (1 hour TTL)."""
        return await self._set(f"candle:{asset_id}", candle.model_dump_json(), ex=3600)

    async def get_current_candle(self, asset_id: str) -> Optional[Candle]:
        """Get the forming candle for an asset."""
        value = await self._get(f"candle:{asset_id}")
        return Candle.model_validate_json(value) if value else None

    # ============ Candle History ============

    async def cache_candles(
        self,
        asset_id: str,
        candles: List[Candle],
        ttl: int = 60,
    ) -> bool:
        """Cache a history snapshot; one candle's worth of TTL by default."""
        value = json.dumps([c.model_dump() for c in candles])
        return await self._set(f"candles:{asset_id}", value, ex=ttl)

    async def get_cached_candles(self, asset_id: str) -> Optional[List[Candle]]:
        """Get a cached history snapshot."""
        value = await self._get(f"candles:{asset_id}")
        if not value:
            return None
        return [Candle.model_validate(c) for c in json.loads(value)]


# Singleton instance
_price_cache: Optional[PriceCache] = None


def get_price_cache() -> PriceCache:
    """Get the price cache singleton."""
    global _price_cache
    if _price_cache is None:
        _price_cache = PriceCache()
    return _price_cache
