"""
Cloudflare Email Routing Admin - FastAPI Application.

This is the main entry point for the dashboard backend.
It provides the REST API consumed by the admin dashboard.
"""
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shared.database import DatabaseService
from shared.logger import setup_logger
from web.backend.api.v1 import auth, cloudflare, email_routing
from web.backend.core.config import get_web_settings
from web.backend.core.errors import (
    DashboardError,
    dashboard_error_handler,
    request_validation_handler,
)
from web.backend.core.rate_limit import limiter
from web.backend.schemas.common import HealthResponse

logger = logging.getLogger("web")

API_PREFIX = "/api/v1"
SERVICE_NAME = "cf-email-routing-admin"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler: owns the database pool and the HTTP client."""
    setup_logger()
    settings = get_web_settings()
    logger.info("🚀 Web API starting on %s:%s", settings.host, settings.port)

    db = DatabaseService()
    if await db.connect():
        logger.info("Database connected")
    else:
        logger.warning("Database unavailable, config and routing endpoints will fail")

    app.state.db = db
    app.state.http_client = httpx.AsyncClient()

    yield

    await app.state.http_client.aclose()
    await db.disconnect()
    logger.info("👋 Web API stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_web_settings()

    app = FastAPI(
        title="Cloudflare Email Routing Admin API",
        description="REST API for managing Cloudflare Email Routing rules",
        version="1.0.0",
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        openapi_url="/api/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Dashboard error shape: {"success": false, "error": ..., "code": ...}
    app.add_exception_handler(DashboardError, dashboard_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Prevent insecure "*" with allow_credentials=True
    cors_origins = [o for o in settings.cors_origins if o != "*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        return response

    app.include_router(auth.router, prefix=f"{API_PREFIX}/auth", tags=["auth"])
    app.include_router(cloudflare.router, prefix=API_PREFIX, tags=["cloudflare"])
    app.include_router(email_routing.router, prefix=f"{API_PREFIX}/email-routing", tags=["email-routing"])

    @app.get(f"{API_PREFIX}/health", tags=["health"], response_model=HealthResponse)
    async def health_check(request: Request):
        """Health check endpoint."""
        db = getattr(request.app.state, "db", None)
        return HealthResponse(
            status="ok",
            service=SERVICE_NAME,
            database=bool(db and db.is_connected),
        )

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_web_settings()
    uvicorn.run(
        "web.backend.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
