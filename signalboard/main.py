"""
SignalBoard Backend - FastAPI Application

Main entry point for the backend API.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from signalboard.core.config import settings
from signalboard.api.v1 import router as api_v1_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    print(f"Starting {settings.app_name} v{settings.app_version}")
    print(f"Environment: {settings.environment}")
    print(f"Live feed: {settings.feed_enabled}")

    # Initialize SQLite database
    from signalboard.db.database import init_db, close_db
    await init_db()
    print("Database initialized")

    # Initialize Redis cache
    from signalboard.services.cache.redis_client import init_redis, close_redis
    redis_client = await init_redis()
    if redis_client:
        print("Redis cache connected")
    else:
        print("Redis unavailable - using in-memory cache")

    # Restore the dashboard session and start the candle feed
    from signalboard.services.session import get_dashboard_session
    session = get_dashboard_session()
    await session.start()
    if settings.feed_enabled:
        print(f"Feed started for {session.asset.id}")
    else:
        print("Feed disabled (feed_enabled=false)")

    # Start the signal clock
    from signalboard.services.signals import SignalScheduler
    scheduler = SignalScheduler(session)
    await scheduler.start()
    print(f"Signal scheduler started (auto signals: {settings.auto_signal_enabled})")

    yield

    # Shutdown
    print("Shutting down...")
    await scheduler.stop()
    await session.stop()
    await close_redis()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    SignalBoard 1-Minute Signal Dashboard API

    ## Architecture
    - **Market Feed**: Streams 1-minute candles from the Deriv WebSocket API
    - **Indicator Engine**: Calculates premium indicators (pure Python/NumPy)
    - **Signal Layer**: LLM-powered CALL/PUT/NEUTRAL call on the next candle
    - **Signal Clock**: Countdown, reveal and expiry of signals
    - **Stats**: User grading and win rate

    ## Core Principles
    - AI suggests, human grades
    - One signal per candle, expiring after one minute
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware - allow both frontend ports
cors_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
# Add any additional origins from settings
if settings.allowed_origins:
    cors_origins.extend([o for o in settings.allowed_origins if o not in cors_origins])

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    from signalboard.services.indicators.service import get_indicator_service
    from signalboard.services.session.dashboard import get_dashboard_session

    session = get_dashboard_session()
    indicators_ok = await get_indicator_service().health_check()
    llm_ok = await session.signal_service.health_check()

    return {
        "status": "healthy" if indicators_ok and llm_ok else "degraded",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "feed": session.feed.state.value,
        "indicators": indicators_ok,
        "llm": llm_ok,
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "SignalBoard Backend API",
        "docs": "/docs",
        "health": "/health",
    }
