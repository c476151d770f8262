"""Catalog API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, exception handlers and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog_api.api.health import router as health_router
from catalog_api.api.middleware import setup_middleware
from catalog_api.api.products import router as products_router
from catalog_api.domain.exceptions import (
    CatalogError,
    NotFoundError,
    PersistenceFailure,
    UploadFailure,
    ValidationError,
)
from catalog_api.infrastructure.blob_storage import close_blob_storage_client
from catalog_api.infrastructure.config import settings
from catalog_api.infrastructure.database import dispose_engine
from catalog_api.infrastructure.logging import configure_logging

configure_logging(settings.log_level)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    logger.info(
        "Starting Catalog API",
        version=settings.api_version,
        debug=settings.debug,
    )

    yield

    logger.info("Shutting down Catalog API")
    await close_blob_storage_client()
    await dispose_engine()


app = FastAPI(
    title="Catalog API",
    description="Product catalog records with dependent reviews",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware (must be added before custom middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware (request ID, admin API key, error handling)
setup_middleware(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(products_router)


# ============================================================================
# Custom Exception Handlers
# ============================================================================


def _error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: dict | list | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": error_code,
            "message": message,
            "details": details if details is not None else [],
            "request_id": getattr(request.state, "request_id", None),
        },
    )


@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Map catalog errors to HTTP responses.

    Validation errors keep their message and details. Collaborator
    failures are already logged by the service and stay opaque.
    """
    if isinstance(exc, ValidationError):
        return _error_response(
            request, status.HTTP_400_BAD_REQUEST, exc.error_code, exc.message, exc.details
        )

    if isinstance(exc, NotFoundError):
        return _error_response(
            request, status.HTTP_404_NOT_FOUND, exc.error_code, exc.message, exc.details
        )

    if isinstance(exc, PersistenceFailure):
        return _error_response(
            request, status.HTTP_500_INTERNAL_SERVER_ERROR, exc.error_code, exc.message
        )

    if isinstance(exc, UploadFailure):
        logger.warning("Image upload failed", status_code=exc.status_code)
        return _error_response(
            request, status.HTTP_502_BAD_GATEWAY, exc.error_code, "Failed to upload images"
        )

    logger.error("Unmapped catalog error", error_code=exc.error_code, error=exc.message)
    return _error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "An internal error occurred"
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", [])
    else:
        error_code = "ERROR"
        message = str(detail)
        details = []

    return _error_response(request, exc.status_code, error_code, message, details)
