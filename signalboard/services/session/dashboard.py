"""
Dashboard Session

Holds the state behind the dashboard: selected asset, live candles, the
current signal, accuracy stats and scanner recommendations.

One session per process. Endpoints and the scheduler both go through it.
"""

import logging
from datetime import datetime
from typing import Optional

from signalboard.core.config import settings
from signalboard.core.market_clock import (
    get_candle_clock,
    get_next_candle_open_ms,
    get_utc_now,
    to_epoch_ms,
)
from signalboard.db.database import (
    add_signal,
    get_db_context,
    get_preference,
    get_recent_signals,
    get_stats,
    record_vote,
    save_stats,
    set_preference,
)
from signalboard.schemas.dashboard import DashboardSnapshot, ScanResult
from signalboard.schemas.indicators import PremiumIndicators
from signalboard.schemas.market import Asset, Candle
from signalboard.schemas.signal import Signal, SignalRecord, Stats, VoteResult
from signalboard.services.base import ValidationError
from signalboard.services.data_ingestion.assets import get_asset, resolve_asset
from signalboard.services.indicators.service import get_indicator_service
from signalboard.services.llm.signal_service import SignalService, get_signal_service
from signalboard.services.scanner.scanner import MarketScanner, get_scanner
from signalboard.services.signals.lifecycle import SignalLifecycle
from signalboard.services.websocket.manager import FeedManager, get_feed_manager

logger = logging.getLogger(__name__)

SELECTED_ASSET_KEY = "selected_asset"


class DashboardSession:
    """
    Dashboard state for one user.

    Usage:
        session = DashboardSession()
        await session.start()
        signal = await session.trigger_analysis()
        await session.vote(signal.id, VoteResult.TRUE)
        await session.stop()
    """

    def __init__(
        self,
        feed: Optional[FeedManager] = None,
        signal_service: Optional[SignalService] = None,
        scanner: Optional[MarketScanner] = None,
        lifecycle: Optional[SignalLifecycle] = None,
        persist: bool = True,
    ):
        self.feed = feed or get_feed_manager()
        self.signal_service = signal_service or get_signal_service()
        self.scanner = scanner or get_scanner()
        self.lifecycle = lifecycle or SignalLifecycle()
        self._persist = persist

        self.asset: Asset = resolve_asset(settings.default_asset)
        self.stats = Stats()
        self.api_error = False
        self.is_scanning = False
        self.recommended_assets: list[str] = []

    # ============ Startup ============

    async def load(self) -> None:
        """Restore the selected asset and stats from the database."""
        if not self._persist:
            return

        async with get_db_context() as db:
            saved_asset = await get_preference(db, SELECTED_ASSET_KEY)
            self.stats = await get_stats(db)

        # Unknown ids fall back to the first catalogue asset
        self.asset = resolve_asset(saved_asset or settings.default_asset)
        logger.info(f"Session restored: asset={self.asset.id}, signals graded={self.stats.total_signals}")

    async def start(self) -> None:
        await self.load()
        if settings.feed_enabled:
            await self.feed.start(self.asset.id)

    async def stop(self) -> None:
        await self.feed.stop()

    # ============ Market ============

    @property
    def candles(self) -> list[Candle]:
        return self.feed.candles

    @property
    def current_price(self) -> Optional[float]:
        return self.feed.current_price

    def get_indicators(self) -> Optional[PremiumIndicators]:
        """Indicator snapshot for the selected asset (None while warming up)."""
        return get_indicator_service().calculate(self.candles)

    async def select_asset(self, asset_id: str) -> Asset:
        """
        Switch the dashboard to another asset.

        Clears candles and the current signal, then resubscribes the feed.

        Raises:
            ValidationError: if the asset is not in the catalogue
        """
        asset = get_asset(asset_id)
        if asset is None:
            raise ValidationError("DashboardSession", f"Unknown asset: {asset_id}")

        self.asset = asset
        self.lifecycle.reset()
        await self.feed.switch_asset(asset.id)

        if self._persist:
            async with get_db_context() as db:
                await set_preference(db, SELECTED_ASSET_KEY, asset.id)

        logger.info(f"Selected asset: {asset.id}")
        return asset

    # ============ Signals ============

    @property
    def current_signal(self) -> Optional[Signal]:
        return self.lifecycle.visible_signal

    def can_analyze(self) -> bool:
        return self.lifecycle.can_request(len(self.candles))

    async def trigger_analysis(
        self,
        auto: bool = False,
        now: Optional[datetime] = None,
    ) -> Optional[Signal]:
        """
        Ask the LLM for the next-candle signal.

        Returns None without doing anything when fewer than the minimum
        candles are loaded or a request is already in flight. An automatic
        request is held until the next candle opens.

        A rejected API key sets `api_error` and leaves the current signal
        in place.
        """
        explicit_now = now
        now = now or get_utc_now()
        now_ms = to_epoch_ms(now)
        candles = self.candles

        if not self.lifecycle.can_request(len(candles)):
            return None

        reveal_at = get_next_candle_open_ms(now) if auto else None
        generation = self.lifecycle.begin(now_ms, reveal_at=reveal_at)
        self.api_error = False
        asset = self.asset

        try:
            indicators = get_indicator_service().calculate(candles)
            signal = await self.signal_service.analyze_market(
                candles, asset.name, indicators, now_ms=now_ms
            )
        except Exception as e:
            logger.error(f"Analysis failed for {asset.id}: {e}")
            if self.lifecycle.is_current(generation):
                self.api_error = True
                self.lifecycle.fail(now_ms, generation)
            return None

        done_ms = to_epoch_ms(get_utc_now()) if explicit_now is None else now_ms

        if not self.lifecycle.is_current(generation):
            logger.info(f"Discarding signal for {asset.id}: dashboard reset during analysis")
            return None

        if signal.is_auth_error:
            self.api_error = True
            self.lifecycle.fail(done_ms, generation)
            return signal

        self.lifecycle.complete(signal, done_ms, generation)

        if self._persist and not signal.is_error:
            try:
                async with get_db_context() as db:
                    await add_signal(db, signal, asset.id)
            except Exception as e:
                logger.error(f"Failed to store signal {signal.id}: {e}")

        return signal

    async def vote(self, signal_id: str, result: VoteResult) -> Signal:
        """
        Grade the current signal.

        Error signals ("Wait...") are shown but never stored, so they cannot
        be graded.

        Raises:
            ValidationError: if signal_id is not the current signal, it was
                already graded, or it is an error signal
        """
        current = self.current_signal
        if current is None or current.id != signal_id:
            raise ValidationError(
                "DashboardSession",
                f"Signal {signal_id} is not the current signal",
                details={"reason": "not_current"},
            )
        if current.voted:
            raise ValidationError(
                "DashboardSession",
                f"Signal {signal_id} was already graded",
                details={"reason": "already_voted"},
            )
        if current.is_error:
            raise ValidationError(
                "DashboardSession",
                f"Signal {signal_id} is an error signal and cannot be graded",
                details={"reason": "error_signal"},
            )

        updated = self.lifecycle.mark_voted(signal_id, result)
        self.stats = self.stats.record(result)

        if self._persist:
            async with get_db_context() as db:
                await save_stats(db, self.stats)
                await record_vote(db, signal_id, result)

        logger.info(f"Signal {signal_id} graded {result.value}; win rate {self.stats.win_rate}%")
        return updated

    async def get_history(self, limit: int = 20, asset_id: Optional[str] = None) -> list[SignalRecord]:
        """Recent stored signals, newest first."""
        if not self._persist:
            return []
        async with get_db_context() as db:
            rows = await get_recent_signals(db, limit=limit, asset_id=asset_id)
            return [SignalRecord.model_validate(row) for row in rows]

    async def reset_stats(self) -> Stats:
        self.stats = Stats()
        if self._persist:
            async with get_db_context() as db:
                await save_stats(db, self.stats)
        logger.info("Stats reset")
        return self.stats

    # ============ Scanner ============

    async def scan_markets(self) -> ScanResult:
        """
        Scan every asset and store the recommendations.

        Raises:
            ValidationError: if a scan is already running
        """
        if self.is_scanning:
            raise ValidationError("DashboardSession", "Scan already in progress")

        self.is_scanning = True
        self.recommended_assets = []
        try:
            result = await self.scanner.scan_all()
        finally:
            self.is_scanning = False

        self.recommended_assets = result.recommended_assets
        return result

    # ============ Clock ============

    def tick(self, now: Optional[datetime] = None) -> bool:
        """
        Advance signal timing.

        Returns True when an automatic request is due.
        """
        now = now or get_utc_now()
        self.lifecycle.tick(to_epoch_ms(now))
        clock = get_candle_clock(self.asset.timezone, now)
        return self.lifecycle.should_auto_request(clock) and self.can_analyze()

    def snapshot(self, now: Optional[datetime] = None) -> DashboardSnapshot:
        """Everything the dashboard shows, at one instant."""
        now = now or get_utc_now()
        return DashboardSnapshot(
            asset=self.asset,
            current_price=self.current_price,
            candle_count=len(self.feed.buffer),
            clock=get_candle_clock(self.asset.timezone, now),
            feed_state=self.feed.state,
            signal=self.current_signal,
            lifecycle_state=self.lifecycle.state,
            is_analyzing=self.lifecycle.is_analyzing,
            is_scanning=self.is_scanning,
            api_error=self.api_error,
            stats=self.stats,
            recommended_assets=self.recommended_assets,
        )


# Singleton instance
_session: Optional[DashboardSession] = None


def get_dashboard_session() -> DashboardSession:
    """Get the dashboard session singleton."""
    global _session
    if _session is None:
        _session = DashboardSession()
    return _session
