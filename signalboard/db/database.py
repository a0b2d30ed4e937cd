"""
Database connection and session management.

Uses SQLite with aiosqlite for async support.
"""

import os
import logging
from datetime import datetime
from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager

from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from signalboard.db.models import Base, SignalHistory, SignalStatsRow, Preference
from signalboard.core.config import settings
from signalboard.schemas.signal import Signal, Stats, VoteResult

logger = logging.getLogger(__name__)

# Database path - create data directory if needed
DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "data")

# SQLite database URL
SQLITE_PATH = settings.sqlite_path or os.path.join(DATA_DIR, "signalboard.db")
DATABASE_URL = f"sqlite+aiosqlite:///{SQLITE_PATH}"

if SQLITE_PATH != ":memory:":
    os.makedirs(os.path.dirname(os.path.abspath(SQLITE_PATH)), exist_ok=True)

# Create async engine
# Note: SQLite requires check_same_thread=False for async
engine = create_async_engine(
    DATABASE_URL,
    echo=False,  # Set to True for SQL debugging
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # Recommended for SQLite
)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def init_db() -> None:
    """
    Initialize the database - create all tables.
    Called on application startup.
    """
    try:
        async with engine.begin() as conn:
            # Create all tables
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Database initialized at: {SQLITE_PATH}")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


async def close_db() -> None:
    """
    Close database connections.
    Called on application shutdown.
    """
    await engine.dispose()
    logger.info("Database connections closed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.
    Use with FastAPI Depends().
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database sessions.
    Use when not in a FastAPI route.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# CRUD helper functions

async def get_stats(session: AsyncSession) -> Stats:
    """Load the accuracy tally (zeros if never saved)."""
    row = await session.get(SignalStatsRow, 1)
    if row is None:
        return Stats()
    return Stats(
        total_signals=row.total_signals,
        correct_signals=row.correct_signals,
        incorrect_signals=row.incorrect_signals,
    )


async def save_stats(session: AsyncSession, stats: Stats) -> None:
    """Store the accuracy tally."""
    row = await session.get(SignalStatsRow, 1)
    if row is None:
        row = SignalStatsRow(id=1)
        session.add(row)
    row.total_signals = stats.total_signals
    row.correct_signals = stats.correct_signals
    row.incorrect_signals = stats.incorrect_signals
    await session.flush()


async def get_preference(session: AsyncSession, key: str, default: Optional[str] = None) -> Optional[str]:
    """Get a stored preference value."""
    pref = await session.get(Preference, key)
    return pref.value if pref else default


async def set_preference(session: AsyncSession, key: str, value: str) -> None:
    """Store a preference value."""
    pref = await session.get(Preference, key)
    if pref is None:
        session.add(Preference(key=key, value=value))
    else:
        pref.value = value
    await session.flush()


async def add_signal(session: AsyncSession, signal: Signal, asset_id: str) -> SignalHistory:
    """Store a revealed signal."""
    row = SignalHistory(
        id=signal.id,
        asset_id=asset_id,
        signal_type=signal.type.value,
        pattern=signal.pattern,
        category=signal.category,
        confidence=signal.confidence,
        description=signal.description,
        time=signal.time,
        expires_at=signal.expires_at,
        voted=signal.voted,
        result=signal.result.value if signal.result else None,
    )
    row = await session.merge(row)
    await session.flush()
    return row


async def record_vote(session: AsyncSession, signal_id: str, result: VoteResult) -> Optional[SignalHistory]:
    """Mark a stored signal as graded."""
    row = await session.get(SignalHistory, signal_id)
    if row:
        row.voted = True
        row.result = result.value
        row.voted_at = datetime.utcnow()
        await session.flush()
    return row


async def get_recent_signals(
    session: AsyncSession,
    limit: int = 20,
    asset_id: Optional[str] = None,
) -> list[SignalHistory]:
    """Get recent signals, newest first."""
    query = select(SignalHistory)
    if asset_id:
        query = query.where(SignalHistory.asset_id == asset_id)
    result = await session.execute(
        query.order_by(SignalHistory.time.desc()).limit(limit)
    )
    return list(result.scalars().all())
