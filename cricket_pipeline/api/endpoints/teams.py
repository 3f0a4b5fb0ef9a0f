"""
Teams API Endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from cricket_pipeline.api.dependencies import get_data_app, get_settings
from cricket_pipeline.api.models import cached_response, error_response
from cricket_pipeline.apps.ipl_data_app import IplDataApp
from cricket_pipeline.core.config import Settings

router = APIRouter()


@router.get("/teams")
async def get_teams(
    year: Optional[int] = Query(default=None),
    refresh: bool = Query(default=False),
    data_app: IplDataApp = Depends(get_data_app),
    settings: Settings = Depends(get_settings),
):
    """Franchise profiles with logos and championship years"""
    try:
        result = await data_app.get_teams(year, refresh)
    except ValueError as e:
        return error_response(400, "Invalid year", str(e))
    return cached_response(result, what="teams", retry_after=settings.retry_after_seconds)
