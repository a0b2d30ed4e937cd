"""
Database module for SignalBoard.

Provides SQLite database connection and models.
"""

from signalboard.db.database import (
    get_db,
    get_db_context,
    init_db,
    close_db,
    engine,
    AsyncSessionLocal,
)
from signalboard.db.models import Base, SignalHistory, SignalStatsRow, Preference

__all__ = [
    "get_db",
    "get_db_context",
    "init_db",
    "close_db",
    "engine",
    "AsyncSessionLocal",
    "Base",
    "SignalHistory",
    "SignalStatsRow",
    "Preference",
]
