"""Tests for signal and stats models."""

import pytest
from pydantic import ValidationError

from signalboard.schemas.signal import (
    ERROR_CATEGORY,
    Signal,
    SignalType,
    Stats,
    VoteResult,
)


class TestStats:
    """Win rate and tally updates."""

    def test_empty_win_rate(self):
        assert Stats().win_rate == 0.0

    def test_win_rate_one_decimal(self):
        stats = Stats(total_signals=3, correct_signals=2, incorrect_signals=1)
        assert stats.win_rate == 66.7

    def test_record_is_immutable(self):
        stats = Stats()
        updated = stats.record(VoteResult.TRUE).record(VoteResult.FALSE)
        assert stats.total_signals == 0
        assert updated.total_signals == 2
        assert updated.correct_signals == 1
        assert updated.incorrect_signals == 1
        assert updated.win_rate == 50.0

    def test_win_rate_serialized(self):
        assert Stats(total_signals=4, correct_signals=1, incorrect_signals=3).model_dump()["win_rate"] == 25.0


class TestSignal:
    """Signal model helpers and bounds."""

    def _signal(self, **overrides) -> Signal:
        fields = dict(
            id="ss-1000",
            type=SignalType.NEUTRAL,
            pattern="Market Analysis",
            category="Sure Shot V20 Platinum",
            confidence=50,
            time=1000,
            description="",
            expires_at=61_000,
        )
        fields.update(overrides)
        return Signal(**fields)

    def test_expiry(self):
        signal = self._signal()
        assert signal.is_expired(60_999) is False
        assert signal.is_expired(61_000) is True

    def test_error_flags(self):
        assert self._signal(category=ERROR_CATEGORY).is_error
        assert self._signal(pattern="AUTH_ERROR").is_auth_error
        assert not self._signal().is_error

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            self._signal(confidence=101)
