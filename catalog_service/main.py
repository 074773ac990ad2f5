"""Catalog service main application module.

This module initializes the FastAPI application and configures
core middleware, routers, exception handlers and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog_service.api.categories import router as categories_router
from catalog_service.api.health import router as health_router
from catalog_service.api.middleware import setup_middleware
from catalog_service.api.products import router as products_router
from catalog_service.domain.exceptions import (
    BadRequestError,
    CategoryHasChildrenError,
    CategoryHasProductsError,
    CategoryNameConflictError,
    DomainError,
    InvalidInputError,
    InvalidParentCategoryError,
    InvalidStateTransitionError,
    NotFoundError,
    SkuConflictError,
    UnauthorizedError,
)
from catalog_service.infrastructure.config import settings
from catalog_service.infrastructure.event_publisher import (
    HttpEventPublisher,
    get_event_publisher,
)
from catalog_service.infrastructure.logging import configure_logging

logger = structlog.get_logger()

ERROR_STATUS: dict[type[DomainError], int] = {
    UnauthorizedError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    CategoryNameConflictError: status.HTTP_409_CONFLICT,
    SkuConflictError: status.HTTP_409_CONFLICT,
    InvalidParentCategoryError: status.HTTP_400_BAD_REQUEST,
    CategoryHasProductsError: status.HTTP_409_CONFLICT,
    CategoryHasChildrenError: status.HTTP_409_CONFLICT,
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    BadRequestError: status.HTTP_400_BAD_REQUEST,
    InvalidStateTransitionError: status.HTTP_409_CONFLICT,
}


def status_for(exc: DomainError) -> int:
    """HTTP status for a domain error, resolved along its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    configure_logging()
    logger.info(
        "Starting catalog service",
        version=settings.api_version,
        debug=settings.debug,
        store_backend=settings.store_backend,
        event_publisher=settings.event_publisher,
    )

    if settings.store_backend == "sql":
        from catalog_service.infrastructure.database import create_schema, dispose_engine

        if settings.auto_create_schema:
            await create_schema()
            logger.info("Database schema ensured")

    yield

    logger.info("Shutting down catalog service")
    publisher = get_event_publisher()
    if isinstance(publisher, HttpEventPublisher):
        await publisher.close()
    if settings.store_backend == "sql":
        await dispose_engine()


app = FastAPI(
    title="Catalog Service",
    description="Multi-tenant product catalog",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware (request ID, identity, error handling)
setup_middleware(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(categories_router)
app.include_router(products_router)


# ============================================================================
# Custom Exception Handlers
# ============================================================================


def _error_body(
    request: Request,
    error_code: str,
    message: str,
    details: dict | list | None = None,
) -> dict:
    return {
        "error_code": error_code,
        "message": message,
        "details": details if details is not None else {},
        "request_id": getattr(request.state, "request_id", None),
    }


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Map domain errors to their stable status codes."""
    status_code = status_for(exc)
    logger.info(
        "Request rejected",
        error_code=exc.error_code,
        status_code=status_code,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status_code,
        content=_error_body(request, exc.error_code, exc.message, exc.details),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation failures with consistent format."""
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=_error_body(request, "VALIDATION_ERROR", "Request validation failed", details),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", {})
    else:
        error_code = "ERROR"
        message = str(detail)
        details = {}

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, error_code, message, details),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with consistent format."""
    logger.exception(
        "Unhandled exception in handler",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "INTERNAL_ERROR", "An internal error occurred"),
    )
