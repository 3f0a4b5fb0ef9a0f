"""
Admin API Endpoints
Cache diagnostics and forced refresh
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from cricket_pipeline.api.dependencies import get_data_app
from cricket_pipeline.api.models import RefreshResponse, error_response
from cricket_pipeline.apps.ipl_data_app import IplDataApp

router = APIRouter()
logger = logging.getLogger("admin_endpoint")


@router.get("/cache-status")
async def cache_status(data_app: IplDataApp = Depends(get_data_app)):
    """Per-key hit/miss/TTL diagnostics plus orchestrator state"""
    return data_app.cache_status()


@router.get("/refresh", response_model=RefreshResponse)
async def refresh(
    year: Optional[int] = Query(default=None, description="Season to refresh; all data when omitted"),
    data_app: IplDataApp = Depends(get_data_app),
):
    """Force a re-scrape regardless of TTL"""
    logger.info(f"Forced refresh requested (year={year})")
    try:
        result = await data_app.refresh(year)
    except ValueError as e:
        return error_response(400, "Invalid year", str(e))
    return RefreshResponse(**result)
