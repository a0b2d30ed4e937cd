"""
Asset API Endpoints

Catalogue of tradable instruments and the dashboard's selected asset.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from signalboard.schemas.market import Asset, AssetCategory, SelectAssetRequest
from signalboard.services.base import ValidationError
from signalboard.services.data_ingestion.assets import get_all_assets, get_assets_by_category
from signalboard.services.session import get_dashboard_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[Asset])
async def list_assets(
    category: Optional[AssetCategory] = Query(None, description="Filter by category"),
):
    """
    Get the asset catalogue in display order.
    """
    if category:
        return get_assets_by_category(category)
    return get_all_assets()


@router.get("/selected", response_model=Asset)
async def get_selected_asset():
    """Get the asset currently streamed on the dashboard."""
    return get_dashboard_session().asset


@router.put("/selected", response_model=Asset)
async def select_asset(request: SelectAssetRequest):
    """
    Switch the dashboard to another asset.

    Clears the candle history and the current signal, then resubscribes
    the feed. The choice survives restarts.
    """
    session = get_dashboard_session()
    try:
        return await session.select_asset(request.asset_id)
    except ValidationError as e:
        raise HTTPException(status_code=404, detail=e.message)
