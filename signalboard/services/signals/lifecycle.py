"""
Signal Lifecycle

Tracks one signal request from trigger to expiry.

States:
    IDLE       no signal yet (or the asset was just switched)
    ANALYZING  an LLM request is in flight; new requests are refused
    PENDING    an automatic result is held until its candle opens
    REVEALED   the signal is live for the current candle
    EXPIRED    the signal's candle is over; it stays visible and votable

The last revealed signal stays visible while the next one is analyzed or
pending, and is replaced only when the next one is revealed.
"""

import logging
from typing import Optional

from signalboard.core.config import settings
from signalboard.schemas.market import CandleClock
from signalboard.schemas.signal import LifecycleState, Signal, VoteResult

logger = logging.getLogger(__name__)


class SignalLifecycle:
    """State machine for the current signal."""

    def __init__(
        self,
        min_candles: Optional[int] = None,
        auto_enabled: Optional[bool] = None,
        auto_lead_seconds: Optional[int] = None,
    ):
        self.min_candles = min_candles if min_candles is not None else settings.min_candles_for_analysis
        self.auto_enabled = auto_enabled if auto_enabled is not None else settings.auto_signal_enabled
        self.auto_lead_seconds = (
            auto_lead_seconds if auto_lead_seconds is not None else settings.auto_signal_lead_seconds
        )
        self._generation = 0
        self.reset()

    def reset(self) -> None:
        """
        Forget every signal (asset switch).

        Requests begun before the reset are stale; their results are ignored.
        """
        self._generation += 1
        self.state = LifecycleState.IDLE
        self.current: Optional[Signal] = None
        self._pending: Optional[Signal] = None
        self._reveal_at: Optional[int] = None
        self._auto_candle: Optional[int] = None

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    @property
    def is_analyzing(self) -> bool:
        return self.state == LifecycleState.ANALYZING

    @property
    def pending_signal(self) -> Optional[Signal]:
        return self._pending

    @property
    def reveal_at(self) -> Optional[int]:
        return self._reveal_at

    @property
    def visible_signal(self) -> Optional[Signal]:
        return self.current

    def _resting_state(self, now_ms: int) -> LifecycleState:
        if self.current is None:
            return LifecycleState.IDLE
        if self.current.is_expired(now_ms):
            return LifecycleState.EXPIRED
        return LifecycleState.REVEALED

    # ============ Requests ============

    def can_request(self, candle_count: int) -> bool:
        """A request needs enough candles and no request in flight."""
        return candle_count >= self.min_candles and not self.is_analyzing

    def begin(self, now_ms: int, reveal_at: Optional[int] = None) -> int:
        """
        Enter ANALYZING.

        reveal_at: candle open time (epoch ms) the result is meant for.
        None reveals the result as soon as it arrives.

        Returns the generation to hand back to complete() or fail().
        """
        self.state = LifecycleState.ANALYZING
        self._pending = None
        self._reveal_at = reveal_at
        if reveal_at is not None:
            self._auto_candle = reveal_at
        logger.debug(f"Signal request started at {now_ms} (reveal_at={reveal_at})")
        return self._generation

    def complete(self, signal: Signal, now_ms: int, generation: Optional[int] = None) -> LifecycleState:
        """Accept an analysis result; hold it if its candle has not opened."""
        if generation is not None and not self.is_current(generation):
            logger.info(f"Ignoring stale signal {signal.id}")
            return self.state
        if self._reveal_at is not None and now_ms < self._reveal_at:
            self._pending = signal
            self.state = LifecycleState.PENDING
        else:
            self._reveal(signal)
        return self.state

    def fail(self, now_ms: int, generation: Optional[int] = None) -> LifecycleState:
        """Abandon the request; the previous signal (if any) stays."""
        if generation is not None and not self.is_current(generation):
            return self.state
        self._pending = None
        self._reveal_at = None
        self.state = self._resting_state(now_ms)
        return self.state

    def _reveal(self, signal: Signal) -> None:
        self.current = signal
        self._pending = None
        self._reveal_at = None
        self.state = LifecycleState.REVEALED
        logger.info(f"Signal revealed: {signal.id} {signal.type.value}")

    # ============ Clock ============

    def tick(self, now_ms: int) -> LifecycleState:
        """Advance time-based transitions."""
        if self.state == LifecycleState.PENDING and self._reveal_at is not None:
            if now_ms >= self._reveal_at:
                self._reveal(self._pending)

        if self.state == LifecycleState.REVEALED and self.current and self.current.is_expired(now_ms):
            self.state = LifecycleState.EXPIRED

        return self.state

    def should_auto_request(self, clock: CandleClock) -> bool:
        """
        Check if an automatic request is due for the upcoming candle.

        Fires once per candle when the countdown enters the lead window.
        Countdown 0 is the first second of a new candle and never fires.
        """
        if not self.auto_enabled or self.is_analyzing:
            return False
        if clock.countdown == 0 or clock.countdown > self.auto_lead_seconds:
            return False
        return self._auto_candle != clock.next_candle_open_time

    # ============ Voting ============

    def mark_voted(self, signal_id: str, result: VoteResult) -> Optional[Signal]:
        """
        Grade the visible signal.

        Returns the updated signal, or None if signal_id is not the visible
        signal or it was already graded.
        """
        if self.current is None or self.current.id != signal_id or self.current.voted:
            return None
        self.current = self.current.model_copy(update={"voted": True, "result": result})
        return self.current
