"""
Signal Timing

CONTRACT:
    Input:  Signal results + wall clock
    Output: The signal visible on the dashboard

RESPONSIBILITIES:
    - Refuse requests while warming up or already analyzing
    - Hold automatic results until their candle opens
    - Expire signals after one candle
    - Grade each signal at most once
"""

from signalboard.services.signals.lifecycle import SignalLifecycle
from signalboard.services.signals.scheduler import SignalScheduler

__all__ = [
    "SignalLifecycle",
    "SignalScheduler",
]
