"""Tests for the background signal scheduler."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from signalboard.services.signals.scheduler import SignalScheduler

NOW = datetime(2024, 1, 1, 12, 0, 52, tzinfo=timezone.utc)


def make_session(due: bool = True):
    session = MagicMock()
    session.tick = MagicMock(return_value=due)
    session.trigger_analysis = AsyncMock(return_value=None)
    return session


@pytest.mark.asyncio
class TestPoll:
    """One clock step."""

    async def test_not_due(self):
        session = make_session(due=False)
        scheduler = SignalScheduler(session, poll_ms=10)

        assert await scheduler.poll(NOW) is False
        session.tick.assert_called_once_with(NOW)
        session.trigger_analysis.assert_not_called()

    async def test_due_starts_automatic_request(self):
        session = make_session(due=True)
        scheduler = SignalScheduler(session, poll_ms=10)

        assert await scheduler.poll(NOW) is True
        await asyncio.sleep(0)
        session.trigger_analysis.assert_awaited_once_with(auto=True, now=NOW)

    async def test_no_overlapping_requests(self):
        release = asyncio.Event()

        async def slow_analysis(auto=False, now=None):
            await release.wait()

        session = make_session(due=True)
        session.trigger_analysis = AsyncMock(side_effect=slow_analysis)
        scheduler = SignalScheduler(session, poll_ms=10)

        assert await scheduler.poll(NOW) is True
        await asyncio.sleep(0)
        assert await scheduler.poll(NOW) is False
        assert session.trigger_analysis.await_count == 1

        release.set()
        await asyncio.sleep(0.01)
        assert await scheduler.poll(NOW) is True
        await scheduler.stop()


@pytest.mark.asyncio
class TestRunLoop:
    """Start and stop of the polling task."""

    async def test_start_polls_until_stopped(self):
        session = make_session(due=False)
        scheduler = SignalScheduler(session, poll_ms=10)

        await scheduler.start()
        assert scheduler.is_running
        await asyncio.sleep(0.05)
        await scheduler.stop()

        assert scheduler.is_running is False
        assert session.tick.call_count >= 2

    async def test_loop_survives_errors(self):
        session = make_session()
        session.tick = MagicMock(side_effect=RuntimeError("clock broke"))
        scheduler = SignalScheduler(session, poll_ms=10)

        await scheduler.start()
        await asyncio.sleep(0.05)
        assert scheduler.is_running
        await scheduler.stop()
        assert session.tick.call_count >= 2

    async def test_stop_cancels_running_analysis(self):
        started = asyncio.Event()

        async def hang(auto=False, now=None):
            started.set()
            await asyncio.sleep(60)

        session = make_session(due=True)
        session.trigger_analysis = AsyncMock(side_effect=hang)
        scheduler = SignalScheduler(session, poll_ms=10)

        await scheduler.poll(NOW)
        await asyncio.wait_for(started.wait(), timeout=1)
        await scheduler.stop()
        assert scheduler._analysis_task is None
