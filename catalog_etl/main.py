"""
Catalog ETL API - batch import service for supplier product catalogs
"""
from contextlib import asynccontextmanager
from typing import Any, Dict

import sentry_sdk
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette_context import plugins
from starlette_context.middleware import ContextMiddleware

from catalog_etl.api.deps import get_storage
from catalog_etl.api.v1 import api_router
from catalog_etl.api.v1.auth import limiter
from catalog_etl.core.config import settings
from catalog_etl.core.database import db_manager, init_db
from catalog_etl.core.exceptions import (
    BaseAPIException,
    handle_api_exception,
    handle_http_exception,
    handle_unexpected_exception,
    handle_validation_exception,
)
from catalog_etl.core.logging import log, setup_logging
from catalog_etl.middleware import RequestIDMiddleware, SecurityHeadersMiddleware, TimingMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan events
    """
    # Startup
    setup_logging()
    log.info("Starting Catalog ETL API", version=settings.VERSION, env=settings.ENVIRONMENT)

    # Initialize Sentry if configured
    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            traces_sample_rate=0.1,
        )
        log.info("Sentry initialized")

    await db_manager.init()
    await init_db()

    yield

    # Shutdown
    log.info("Shutting down Catalog ETL API")
    if get_storage.cache_info().currsize:
        await get_storage().close()
        get_storage.cache_clear()
    await db_manager.close()


def create_application() -> FastAPI:
    """
    Create FastAPI application with all configurations
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json" if settings.DEBUG else None,
        docs_url=f"{settings.API_V1_STR}/docs" if settings.DEBUG else None,
        redoc_url=None,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "health", "description": "Health check endpoints"},
            {"name": "import", "description": "Batch catalog import"},
            {"name": "auth", "description": "Admin registration and login"},
        ],
    )

    # Rate limiter used by the auth routes
    app.state.limiter = limiter

    # Add custom exception handlers
    app.add_exception_handler(BaseAPIException, handle_api_exception)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_exception)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, handle_unexpected_exception)

    # Add middleware stack (last added runs first)
    if settings.SENTRY_DSN:
        app.add_middleware(SentryAsgiMiddleware)

    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID", "X-Process-Time"],
        )

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        ContextMiddleware,
        plugins=(
            plugins.RequestIdPlugin(),
            plugins.CorrelationIdPlugin(force_new_uuid=False),
        ),
    )
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(TimingMiddleware)

    # Add API routes
    app.include_router(api_router, prefix=settings.API_V1_STR)

    # Metrics
    if settings.ENVIRONMENT != "development":
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    @app.get("/", tags=["root"])
    async def root() -> Dict[str, Any]:
        """Service information"""
        return {
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "import": f"{settings.API_V1_STR}/batch-import",
            "docs": f"{settings.API_V1_STR}/docs" if settings.DEBUG else None,
        }

    return app


# Create the application instance
app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "catalog_etl.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=settings.WORKERS if not settings.DEBUG else 1,
        log_config=None,
        access_log=False,
    )
