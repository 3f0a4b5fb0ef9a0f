"""
API Models
Pydantic models and response helpers shared by the endpoints
"""

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx answer"""

    error: str
    message: str
    timestamp: str = Field(default_factory=_utc_now)


class RefreshResponse(BaseModel):
    """Result of a forced refresh"""

    success: bool
    message: str
    year: Optional[int] = None
    results: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Health check response model"""

    status: str
    timestamp: str = Field(default_factory=_utc_now)
    state: Optional[str] = None
    cache_size: Optional[int] = None


def error_response(status_code: int, error: str, message: str, *, retry_after: Optional[int] = None) -> JSONResponse:
    headers = {"Retry-After": str(retry_after)} if retry_after else None
    body = ErrorResponse(error=error, message=message).model_dump()
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def cached_response(result, *, what: str, retry_after: int):
    """200 with the cached (possibly stale) payload, or 503 + Retry-After for cold/failed keys."""
    if result.ok:
        return {**result.data, "cached": result.cached, "stale": result.stale}
    return error_response(
        503,
        f"Failed to fetch {what}",
        result.error or f"{what} is not available yet",
        retry_after=retry_after,
    )
