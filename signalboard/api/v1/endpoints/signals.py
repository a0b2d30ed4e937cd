"""
Signal API Endpoints

Request, read and grade next-candle signals.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from signalboard.schemas.signal import Signal, SignalRecord, VoteRequest
from signalboard.services.base import ValidationError
from signalboard.services.session import get_dashboard_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/analyze", response_model=Signal)
async def analyze():
    """
    Ask the AI for a CALL/PUT/NEUTRAL signal on the next candle.

    Returns 409 while fewer than 5 candles are loaded or while another
    analysis is running. A rejected API key returns 401 and keeps the
    current signal.
    """
    session = get_dashboard_session()

    if not session.can_analyze():
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Analysis not available",
                "candles": len(session.candles),
                "is_analyzing": session.lifecycle.is_analyzing,
            },
        )

    signal = await session.trigger_analysis()

    if signal is None:
        raise HTTPException(status_code=503, detail="Signal analysis failed")
    if signal.is_auth_error:
        raise HTTPException(
            status_code=401,
            detail={"message": signal.description, "pattern": signal.pattern},
        )

    return signal


@router.get("/current", response_model=Optional[Signal])
async def get_current_signal():
    """Get the signal shown on the dashboard (null if none yet)."""
    return get_dashboard_session().current_signal


@router.post("/{signal_id}/vote", response_model=Signal)
async def vote(signal_id: str, request: VoteRequest):
    """
    Grade the current signal as a win (TRUE) or loss (FALSE).

    Each signal can be graded once. Returns 404 for a signal that is not
    the current one and 409 for a repeat vote or an error signal.
    """
    session = get_dashboard_session()
    try:
        return await session.vote(signal_id, request.result)
    except ValidationError as e:
        status = 409 if e.details.get("reason") in ("already_voted", "error_signal") else 404
        raise HTTPException(status_code=status, detail=e.message)


@router.get("/history", response_model=list[SignalRecord])
async def get_history(
    limit: int = Query(default=20, ge=1, le=200),
    asset_id: Optional[str] = Query(None, description="Filter by asset"),
):
    """Get recent signals with their grading, newest first."""
    session = get_dashboard_session()
    return await session.get_history(limit=limit, asset_id=asset_id)
