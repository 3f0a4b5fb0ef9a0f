"""
FastAPI Application Main
Serves cached IPL data to the dashboard
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse

from cricket_pipeline.api.models import HealthResponse, error_response
from cricket_pipeline.apps.ipl_data_app import IplDataApp
from cricket_pipeline.core.config import Settings
from cricket_pipeline.monitoring.prometheus_metrics import PrometheusMetrics


def create_fastapi_app(
    settings: Settings,
    data_app: Optional[IplDataApp] = None,
    *,
    metrics: Optional[PrometheusMetrics] = None,
) -> FastAPI:
    """Factory function to create the FastAPI app.

    The data app is built here unless injected; its startup preload and the
    periodic refresh run as background tasks for the lifetime of the server.
    """
    data_app = data_app or IplDataApp(settings, metrics=metrics)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application Lifespan Management"""
        logger.info("Starting IPL Data API")
        await data_app.start()
        logger.info("Application startup complete")
        yield
        logger.info("Shutting down application")
        await data_app.shutdown()

    app = FastAPI(
        title="IPL Data API",
        description="Cached IPL standings, results, teams and news scraped from iplt20.com",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Make the data app available to endpoints
    app.state.data_app = data_app
    app.state.settings = settings
    app.state.metrics = data_app.metrics

    # CORS Middleware (tighten in non-development)
    cors_origins = settings.cors_origins
    if settings.environment != "development":
        cors_origins = [o for o in cors_origins if o != "*"] or []
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def metrics_http_middleware(request: Request, call_next):
        start = time.time()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            metrics_obj = app.state.metrics
            if metrics_obj is not None:
                metrics_obj.record_api_request(
                    method=request.method,
                    endpoint=request.url.path,
                    status=str(getattr(response, "status_code", 500)),
                    duration=time.time() - start,
                )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}")
        return error_response(500, "Internal server error", str(exc) or type(exc).__name__)

    @app.get("/", response_class=HTMLResponse)
    async def root():
        """Root endpoint with API documentation"""
        return """
        <html>
            <head>
                <title>IPL Data API</title>
            </head>
            <body>
                <h1>IPL Data API</h1>
                <ul>
                    <li><a href="/docs">API Documentation (Swagger)</a></li>
                    <li><a href="/health">Health Check</a></li>
                    <li><a href="/metrics">Prometheus Metrics</a></li>
                    <li><a href="/api/cache-status">Cache Status</a></li>
                </ul>
            </body>
        </html>
        """

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Basic health check endpoint"""
        return HealthResponse(
            status="ok",
            state=data_app.orchestrator.state,
            cache_size=len(data_app.cache.keys()),
        )

    @app.get("/metrics", response_class=PlainTextResponse)
    async def metrics_endpoint():
        if app.state.metrics is None:
            return PlainTextResponse("# metrics disabled\n", status_code=404)
        app.state.metrics.update_cache_metrics(data_app.cache)
        return app.state.metrics.export_metrics()

    # Include aggregated API router
    from cricket_pipeline.api.router import api_router

    app.include_router(api_router, prefix=settings.api_prefix)

    return app
