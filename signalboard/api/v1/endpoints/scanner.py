"""
Market Scanner API Endpoints

Scan every asset for a strong trend with a detected chart pattern.
"""

import logging

from fastapi import APIRouter, HTTPException

from signalboard.schemas.dashboard import ScanResult
from signalboard.services.base import ValidationError
from signalboard.services.scanner import get_scanner
from signalboard.services.session import get_dashboard_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/scan", response_model=ScanResult)
async def scan_markets():
    """
    Scan the whole catalogue.

    Recommended assets have trend strength of at least 0.5 and a detected
    triangle or channel. Returns 409 if a scan is already running.
    """
    session = get_dashboard_session()
    try:
        return await session.scan_markets()
    except ValidationError as e:
        raise HTTPException(status_code=409, detail=e.message)


@router.get("/recommended")
async def get_recommended():
    """
    Get the recommendations of the last scan with per-asset details.
    """
    session = get_dashboard_session()
    scanner = get_scanner()
    return {
        "recommended_assets": session.recommended_assets,
        "is_scanning": session.is_scanning,
        "last_scan_time": scanner.last_scan_time.isoformat() if scanner.last_scan_time else None,
        "results": [r.to_dict() for r in scanner.last_results],
    }
