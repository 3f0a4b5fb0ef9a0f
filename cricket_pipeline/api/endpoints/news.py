"""
News API Endpoints
"""

from fastapi import APIRouter, Depends, Query

from cricket_pipeline.api.dependencies import get_data_app, get_settings
from cricket_pipeline.api.models import cached_response
from cricket_pipeline.apps.ipl_data_app import IplDataApp
from cricket_pipeline.core.config import Settings

router = APIRouter()


@router.get("/news")
async def get_news(
    limit: int = Query(default=10, ge=1, le=50),
    refresh: bool = Query(default=False),
    data_app: IplDataApp = Depends(get_data_app),
    settings: Settings = Depends(get_settings),
):
    """Latest news articles (placeholders when the news page yields nothing)"""
    result = await data_app.get_news(limit, refresh)
    return cached_response(result, what="news", retry_after=settings.retry_after_seconds)
