"""
API Dependencies
Dependency injection for FastAPI
"""

from fastapi import Request

from cricket_pipeline.apps.ipl_data_app import IplDataApp
from cricket_pipeline.core.config import Settings


async def get_data_app(request: Request) -> IplDataApp:
    """Dependency for the IPL data app (shared over the app lifecycle)"""
    return request.app.state.data_app


async def get_settings(request: Request) -> Settings:
    return request.app.state.settings
