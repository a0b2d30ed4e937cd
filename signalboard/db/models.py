"""
SQLAlchemy models for SignalBoard database.

Uses SQLite for local persistence of:
- Signal history (with the user's grading)
- Running accuracy stats
- Dashboard preferences (selected asset)
"""

from datetime import datetime

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    DateTime,
    Boolean,
    Text,
    BigInteger,
    Index,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class SignalHistory(Base):
    """
    Every non-error signal shown on the dashboard.
    Error signals are not stored and cannot be graded.
    """
    __tablename__ = "signal_history"

    id = Column(String(40), primary_key=True)  # ss-<epoch ms>
    asset_id = Column(String(20), nullable=False, index=True)
    signal_type = Column(String(10), nullable=False)  # CALL, PUT, NEUTRAL
    pattern = Column(String(100), nullable=False)
    category = Column(String(50), nullable=False)
    confidence = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    time = Column(BigInteger, nullable=False)  # epoch ms
    expires_at = Column(BigInteger, nullable=False)  # epoch ms

    # Grading
    voted = Column(Boolean, default=False)
    result = Column(String(10), nullable=True)  # TRUE, FALSE
    voted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_signal_history_asset_time", "asset_id", "time"),
    )


class SignalStatsRow(Base):
    """
    Running accuracy tally.
    Single row (id=1).
    """
    __tablename__ = "signal_stats"

    id = Column(Integer, primary_key=True, default=1)
    total_signals = Column(Integer, default=0, nullable=False)
    correct_signals = Column(Integer, default=0, nullable=False)
    incorrect_signals = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Preference(Base):
    """Key/value dashboard preferences."""
    __tablename__ = "preferences"

    key = Column(String(50), primary_key=True)
    value = Column(String(200), nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
