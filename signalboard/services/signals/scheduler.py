"""
Signal Scheduler

Background task that drives the dashboard clock: promotes pending signals,
expires old ones and fires automatic requests before each candle opens.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional, Protocol

from signalboard.core.config import settings
from signalboard.core.market_clock import get_utc_now

logger = logging.getLogger(__name__)


class ClockDriven(Protocol):
    def tick(self, now: datetime) -> bool:
        """Advance the clock; True when an automatic request is due."""
        ...

    async def trigger_analysis(self, auto: bool = False, now: Optional[datetime] = None):
        ...


class SignalScheduler:
    """
    Polls the session clock every `clock_poll_ms`.

    Usage:
        scheduler = SignalScheduler(session)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(self, session: ClockDriven, poll_ms: Optional[int] = None):
        self._session = session
        self._poll_seconds = (poll_ms or settings.clock_poll_ms) / 1000
        self._task: Optional[asyncio.Task] = None
        self._analysis_task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Signal scheduler started ({self._poll_seconds * 1000:.0f}ms poll)")

    async def stop(self) -> None:
        self._running = False
        for task in (self._task, self._analysis_task):
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._task = None
        self._analysis_task = None
        logger.info("Signal scheduler stopped")

    async def poll(self, now: Optional[datetime] = None) -> bool:
        """
        Run one clock step.

        Returns True if an automatic request was started.
        """
        now = now or get_utc_now()
        if not self._session.tick(now):
            return False

        if self._analysis_task and not self._analysis_task.done():
            return False

        self._analysis_task = asyncio.create_task(
            self._session.trigger_analysis(auto=True, now=now)
        )
        return True

    async def _run(self) -> None:
        while self._running:
            try:
                await self.poll()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Signal scheduler error: {e}")
            await asyncio.sleep(self._poll_seconds)
