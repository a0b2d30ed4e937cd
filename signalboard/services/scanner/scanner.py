"""
Market Scanner Service

Scans every catalogue asset and recommends those with a clear setup.

An asset is recommended when its indicator snapshot shows a trend strength
of at least `scan_min_trend_strength` and a detected chart pattern.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional, List, Dict, Any
from dataclasses import dataclass, field, asdict

from signalboard.core.config import settings
from signalboard.core.market_clock import get_utc_now
from signalboard.schemas.dashboard import ScanResult
from signalboard.schemas.indicators import ChartPattern, PremiumIndicators
from signalboard.schemas.market import Asset, Candle
from signalboard.services.base import FeedError
from signalboard.services.cache.redis_client import get_price_cache
from signalboard.services.data_ingestion.assets import get_all_assets
from signalboard.services.data_ingestion.deriv_adapter import DerivClient
from signalboard.services.indicators.service import calculate_premium_indicators

logger = logging.getLogger(__name__)


@dataclass
class AssetScan:
    """Result of scanning a single asset."""
    asset_id: str
    trend: str
    trend_strength: float
    pattern: str
    recommended: bool
    scan_time: str = field(default_factory=lambda: get_utc_now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def is_recommended(indicators: PremiumIndicators, min_trend_strength: float) -> bool:
    """Strong enough trend plus a recognisable chart pattern."""
    return (
        indicators.trend_strength >= min_trend_strength
        and indicators.detected_pattern != ChartPattern.NONE
    )


class MarketScanner:
    """
    Scans assets for tradeable setups.

    Usage:
        scanner = MarketScanner()
        result = await scanner.scan_all()
        result.recommended_assets  # ["frxEURUSD", "R_100", ...]
    """

    def __init__(
        self,
        client_factory: Callable[[], DerivClient] = DerivClient,
        min_trend_strength: Optional[float] = None,
    ):
        self._client_factory = client_factory
        self.min_trend_strength = (
            min_trend_strength if min_trend_strength is not None else settings.scan_min_trend_strength
        )
        self._results: Dict[str, AssetScan] = {}
        self._last_scan_time: Optional[datetime] = None

    @property
    def last_results(self) -> List[AssetScan]:
        return list(self._results.values())

    @property
    def last_scan_time(self) -> Optional[datetime]:
        return self._last_scan_time

    async def _get_candles(self, asset_id: str) -> List[Candle]:
        """Cached history if fresh, else a one-shot fetch."""
        cache = get_price_cache()
        candles = await cache.get_cached_candles(asset_id)
        if candles:
            return candles

        client = self._client_factory()
        try:
            candles = await client.fetch_history(asset_id, settings.history_count)
        finally:
            await client.close()

        await cache.cache_candles(asset_id, candles)
        return candles

    async def scan_asset(self, asset: Asset) -> Optional[AssetScan]:
        """
        Scan a single asset.

        Returns None while the asset has too little history for indicators.

        Raises:
            FeedError: if history could not be fetched
        """
        candles = await self._get_candles(asset.id)
        indicators = calculate_premium_indicators(candles)
        if indicators is None:
            logger.debug(f"Insufficient data for {asset.id}: {len(candles)} candles")
            return None

        return AssetScan(
            asset_id=asset.id,
            trend=indicators.trend.value,
            trend_strength=indicators.trend_strength,
            pattern=indicators.detected_pattern.value,
            recommended=is_recommended(indicators, self.min_trend_strength),
        )

    async def scan_all(self, assets: Optional[List[Asset]] = None) -> ScanResult:
        """
        Scan assets concurrently (the whole catalogue by default).

        Assets whose history fails to load are reported in `failed`.
        """
        assets = assets if assets is not None else get_all_assets()

        tasks = [self.scan_asset(asset) for asset in assets]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        recommended: List[str] = []
        failed: List[str] = []
        self._results = {}

        for asset, result in zip(assets, results):
            if isinstance(result, FeedError):
                logger.warning(f"Scan failed for {asset.id}: {result}")
                failed.append(asset.id)
            elif isinstance(result, BaseException):
                logger.error(f"Error scanning {asset.id}: {result}")
                failed.append(asset.id)
            elif isinstance(result, AssetScan):
                self._results[asset.id] = result
                if result.recommended:
                    recommended.append(asset.id)

        self._last_scan_time = get_utc_now()
        logger.info(f"Scan complete: {len(recommended)}/{len(assets)} recommended")

        return ScanResult(
            recommended_assets=recommended,
            scanned=len(assets) - len(failed),
            failed=failed,
        )


# Singleton instance
_scanner: Optional[MarketScanner] = None


def get_scanner() -> MarketScanner:
    """Get the scanner singleton."""
    global _scanner
    if _scanner is None:
        _scanner = MarketScanner()
    return _scanner
