"""API middleware for the catalog service.

Provides:
- Request ID correlation
- Caller identity extraction from gateway headers
- Error handling
"""

import time
from dataclasses import dataclass, field
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger()


# ============================================================================
# Request ID Middleware
# ============================================================================


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID for correlation.

    Generates or extracts a request ID and adds it to:
    - Request state for access in handlers
    - Response headers for client correlation
    - Log context for tracing
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request with correlation ID.

        Args:
            request: Incoming request.
            call_next: Next middleware/handler.

        Returns:
            Response with request ID header.
        """
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid4())
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=getattr(response, "status_code", 500),
                duration_ms=round(duration_ms, 2),
            )
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[self.HEADER_NAME] = request_id
        return response


# ============================================================================
# Identity Middleware
# ============================================================================


@dataclass(frozen=True)
class RequestIdentity:
    """Identity asserted by the authentication gateway.

    Any of the fields may be missing; the route dependencies decide
    which ones an operation requires.
    """

    tenant_id: str | None = None
    user_id: str | None = None
    roles: frozenset[str] = field(default_factory=frozenset)


def parse_roles(header: str | None) -> frozenset[str]:
    """Parse a comma-separated roles header.

    ``ROLE_`` prefixes are stripped and names upper-cased, so
    ``"role_seller, ADMIN"`` yields ``{"SELLER", "ADMIN"}``.
    """
    if not header:
        return frozenset()
    roles = set()
    for raw in header.split(","):
        role = raw.strip().upper()
        if role.startswith("ROLE_"):
            role = role[len("ROLE_"):]
        if role:
            roles.add(role)
    return frozenset(roles)


class IdentityMiddleware(BaseHTTPMiddleware):
    """Reads the caller identity headers into ``request.state.identity``.

    Headers:
        X-Tenant-ID: Tenant the caller belongs to.
        X-User-ID: Authenticated user id.
        X-Roles: Comma-separated role names.
    """

    TENANT_HEADER = "X-Tenant-ID"
    USER_HEADER = "X-User-ID"
    ROLES_HEADER = "X-Roles"

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        identity = RequestIdentity(
            tenant_id=(request.headers.get(self.TENANT_HEADER) or "").strip() or None,
            user_id=(request.headers.get(self.USER_HEADER) or "").strip() or None,
            roles=parse_roles(request.headers.get(self.ROLES_HEADER)),
        )
        request.state.identity = identity

        if identity.user_id:
            structlog.contextvars.bind_contextvars(user_id=identity.user_id)
        try:
            return await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("user_id")


# ============================================================================
# Error Handling Middleware
# ============================================================================


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware for consistent error handling.

    Catches unhandled exceptions and returns standardized error responses.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            request_id = getattr(request.state, "request_id", None)

            logger.exception(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error=str(e),
            )

            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error_code": "INTERNAL_ERROR",
                    "message": "An internal error occurred",
                    "details": {},
                    "request_id": request_id,
                },
            )


# ============================================================================
# Middleware Setup
# ============================================================================


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application.

    Middleware is added in reverse order (last added = first executed).

    Args:
        app: FastAPI application instance.
    """
    # Error handling (innermost - sees the request id and identity)
    app.add_middleware(ErrorHandlerMiddleware)

    # Caller identity
    app.add_middleware(IdentityMiddleware)

    # Request ID correlation (outermost)
    app.add_middleware(RequestIdMiddleware)
