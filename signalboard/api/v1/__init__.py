"""
API v1 Router

All API endpoints for the frontend.
"""

from fastapi import APIRouter

from signalboard.api.v1.endpoints import assets, market, signals, stats, scanner, stream

router = APIRouter()

# Include all endpoint routers
router.include_router(assets.router, prefix="/assets", tags=["Assets"])
router.include_router(market.router, prefix="/market", tags=["Market Data"])
router.include_router(signals.router, prefix="/signals", tags=["Signals"])
router.include_router(stats.router, prefix="/stats", tags=["Stats"])
router.include_router(scanner.router, prefix="/scanner", tags=["Market Scanner"])
router.include_router(stream.router, prefix="/stream", tags=["Real-Time Streaming"])
