"""
Main FastAPI application.

Site builder backend API with:
- CORS configuration
- Error handling that renders ``{"error": message}`` bodies
- Request ID tracking
- Structured logging
- Prometheus metrics
- Static serving of published sites
"""
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from sitebuilder import __version__
from sitebuilder.config import get_settings
from sitebuilder.core.exceptions import SiteBuilderError
from sitebuilder.core.sites import PUBLISHED_PREFIX
from sitebuilder.monitoring.logging import setup_logging
from sitebuilder.monitoring.metrics import metrics

from .routes import (
    admin_router,
    auth_router,
    domain_router,
    monitoring_router,
    payment_router,
    site_router,
    webhook_router,
)

# Setup logging first
setup_logging()
logger = structlog.get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, Any]:
    """
    Application lifespan manager.

    Creates the storage directories on startup.
    """
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        env=settings.app_env,
        test_mode=settings.is_test_mode,
    )

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.sites_dir.mkdir(parents=True, exist_ok=True)
    logger.info(
        "storage_initialized",
        data_dir=str(settings.data_dir),
        sites_dir=str(settings.sites_dir),
    )

    if settings.jwt_secret == "dev_secret" and settings.is_production:
        logger.warning("jwt_secret_is_default")

    yield

    logger.info("application_shutdown")


app = FastAPI(
    title="Site Builder Backend",
    description=(
        "Payments, domain checks and registration, and static site hosting "
        "for the website builder."
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id_middleware(request: Request, call_next: Any) -> Response:
    """
    Add request ID to all requests for tracing.

    Also records request timing and binds structured logging context.
    """
    request_id = str(uuid.uuid4())
    start_time = time.time()

    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    logger.info(
        "request_started",
        client_host=request.client.host if request.client else None,
    )

    try:
        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id

        duration = time.time() - start_time
        route = request.scope.get("route")
        metrics.record_http_request(
            request.method,
            getattr(route, "path", "unmatched"),
            response.status_code,
            duration,
        )
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_seconds=duration,
        )

        return response

    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            "request_failed",
            error=str(e),
            duration_seconds=duration,
        )
        raise

    finally:
        structlog.contextvars.clear_contextvars()


@app.exception_handler(SiteBuilderError)
async def application_error_handler(request: Request, exc: SiteBuilderError) -> JSONResponse:
    """Render application errors as ``{"error": message}``."""
    log = logger.error if exc.http_status >= 500 else logger.info
    log(
        "request_error",
        error_code=exc.error_code,
        error=exc.message,
        status_code=exc.http_status,
        path=request.url.path,
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or malformed body fields are a 400 with the first problem named."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"

    logger.info("request_validation_failed", error=message, path=request.url.path)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.
    """
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# Include routers
app.include_router(payment_router)
app.include_router(webhook_router)
app.include_router(domain_router)
app.include_router(auth_router)
app.include_router(site_router)
app.include_router(admin_router)
app.include_router(monitoring_router)

# Published sites are served verbatim from the sites directory
app.mount(
    PUBLISHED_PREFIX,
    StaticFiles(directory=settings.sites_dir, check_dir=False),
    name="published",
)


@app.get("/", tags=["root"])
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "service": settings.app_name,
        "version": __version__,
        "status": "operational",
        "environment": settings.app_env,
        "test_mode": settings.is_test_mode,
        "docs": "/docs",
        "health": "/api/health",
        "metrics": "/metrics",
    }


def run() -> None:
    """Console entry point."""
    uvicorn.run(
        "sitebuilder.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
