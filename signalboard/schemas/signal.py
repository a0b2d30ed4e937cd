"""
CONTRACT 3: Signal Layer

Input: Candles + PremiumIndicators
Output: Signal

A signal is a directional call on the NEXT 1-minute candle. The user grades
each signal once (TRUE/FALSE) and the running tally becomes Stats.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, computed_field


# =============================================================================
# ENUMS
# =============================================================================


class SignalType(str, Enum):
    CALL = "CALL"
    PUT = "PUT"
    NEUTRAL = "NEUTRAL"


class VoteResult(str, Enum):
    TRUE = "TRUE"
    FALSE = "FALSE"


class LifecycleState(str, Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    PENDING = "PENDING"
    REVEALED = "REVEALED"
    EXPIRED = "EXPIRED"


SIGNAL_CATEGORY = "Sure Shot V20 Platinum"
ERROR_CATEGORY = "System Error"
AUTH_ERROR_PATTERN = "AUTH_ERROR"
RETRY_PATTERN = "Wait..."


# =============================================================================
# SIGNAL
# =============================================================================


class Signal(BaseModel):
    """Directional call for the next candle."""

    id: str
    type: SignalType
    pattern: str
    category: str
    confidence: float = Field(..., ge=0, le=100)
    time: int = Field(..., description="Creation time, epoch ms")
    description: str
    voted: bool = False
    result: Optional[VoteResult] = None
    expires_at: int = Field(..., description="Expiry time, epoch ms")

    @property
    def is_error(self) -> bool:
        return self.category == ERROR_CATEGORY

    @property
    def is_auth_error(self) -> bool:
        return self.pattern == AUTH_ERROR_PATTERN

    def is_expired(self, now_ms: int) -> bool:
        return now_ms >= self.expires_at


class VoteRequest(BaseModel):
    """User grading of a signal."""

    result: VoteResult


# =============================================================================
# STATS
# =============================================================================


class Stats(BaseModel):
    """Running accuracy tally of graded signals."""

    total_signals: int = Field(default=0, ge=0)
    correct_signals: int = Field(default=0, ge=0)
    incorrect_signals: int = Field(default=0, ge=0)

    @computed_field
    @property
    def win_rate(self) -> float:
        """Percent of graded signals marked correct, one decimal."""
        if self.total_signals <= 0:
            return 0.0
        return round((self.correct_signals / self.total_signals) * 100, 1)

    def record(self, result: VoteResult) -> "Stats":
        """Return a new tally with one more graded signal."""
        if result == VoteResult.TRUE:
            return Stats(
                total_signals=self.total_signals + 1,
                correct_signals=self.correct_signals + 1,
                incorrect_signals=self.incorrect_signals,
            )
        return Stats(
            total_signals=self.total_signals + 1,
            correct_signals=self.correct_signals,
            incorrect_signals=self.incorrect_signals + 1,
        )


# =============================================================================
# HISTORY
# =============================================================================


class SignalRecord(BaseModel):
    """Stored signal with its grading."""

    id: str
    asset_id: str
    signal_type: SignalType
    pattern: str
    category: str
    confidence: float
    description: Optional[str] = None
    time: int
    expires_at: int
    voted: bool = False
    result: Optional[VoteResult] = None

    class Config:
        from_attributes = True
