"""
Market Data API Endpoints

Candles, market clock and indicators for the selected asset.
"""

from fastapi import APIRouter, HTTPException, Query

from signalboard.schemas.indicators import PremiumIndicators
from signalboard.schemas.market import CandleClock, CandleSeries
from signalboard.core.market_clock import get_candle_clock
from signalboard.services.session import get_dashboard_session

router = APIRouter()


@router.get("/candles", response_model=CandleSeries)
async def get_candles(
    limit: int = Query(default=300, ge=1, le=300, description="Number of most recent candles"),
):
    """
    Get the candle history of the selected asset.

    Oldest first; the last candle is the one still forming.
    """
    session = get_dashboard_session()
    return CandleSeries(
        asset_id=session.asset.id,
        candles=session.candles[-limit:],
        current_price=session.current_price,
    )


@router.get("/clock", response_model=CandleClock)
async def get_clock():
    """
    Get the market time in the asset's timezone and the countdown to the
    next candle.
    """
    session = get_dashboard_session()
    return get_candle_clock(session.asset.timezone)


@router.get("/indicators", response_model=PremiumIndicators)
async def get_indicators():
    """
    Get the premium indicator snapshot for the latest candle.

    Returns 409 until enough candles have loaded.
    """
    session = get_dashboard_session()
    indicators = session.get_indicators()

    if indicators is None:
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Indicators warming up",
                "candles": len(session.candles),
            },
        )

    return indicators
