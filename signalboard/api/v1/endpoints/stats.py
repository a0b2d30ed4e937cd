"""
Stats API Endpoints

Running accuracy of graded signals.
"""

from fastapi import APIRouter

from signalboard.schemas.signal import Stats
from signalboard.services.session import get_dashboard_session

router = APIRouter()


@router.get("", response_model=Stats)
async def get_stats():
    """Get total/correct/incorrect counts and the win rate."""
    return get_dashboard_session().stats


@router.post("/reset", response_model=Stats)
async def reset_stats():
    """Zero the tally."""
    return await get_dashboard_session().reset_stats()
