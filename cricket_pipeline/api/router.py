"""
Aggregated API router.
"""

from fastapi import APIRouter

from cricket_pipeline.api.endpoints import admin, matches, news, points_table, teams


api_router = APIRouter()

# Register endpoint routers here to keep create_fastapi_app clean
api_router.include_router(points_table.router, tags=["points-table"])
api_router.include_router(matches.router, tags=["matches"])
api_router.include_router(teams.router, tags=["teams"])
api_router.include_router(news.router, tags=["news"])
api_router.include_router(admin.router, tags=["admin"])
