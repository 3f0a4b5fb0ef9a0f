"""
Matches API Endpoints
Raw match results and the parsed schedule view
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from cricket_pipeline.api.dependencies import get_data_app, get_settings
from cricket_pipeline.api.models import cached_response, error_response
from cricket_pipeline.apps.ipl_data_app import IplDataApp
from cricket_pipeline.core.config import Settings

router = APIRouter()


@router.get("/matches")
async def get_matches(
    year: Optional[int] = Query(default=None),
    refresh: bool = Query(default=False),
    data_app: IplDataApp = Depends(get_data_app),
    settings: Settings = Depends(get_settings),
):
    """Match descriptions of one season, in page order"""
    try:
        result = await data_app.get_matches(year, refresh)
    except ValueError as e:
        return error_response(400, "Invalid year", str(e))
    return cached_response(result, what="matches", retry_after=settings.retry_after_seconds)


@router.get("/schedule")
async def get_schedule(
    year: Optional[int] = Query(default=None),
    refresh: bool = Query(default=False),
    data_app: IplDataApp = Depends(get_data_app),
    settings: Settings = Depends(get_settings),
):
    """Matches with status, team codes, scores and winner parsed out"""
    try:
        result = await data_app.get_schedule(year, refresh)
    except ValueError as e:
        return error_response(400, "Invalid year", str(e))
    return cached_response(result, what="schedule", retry_after=settings.retry_after_seconds)
