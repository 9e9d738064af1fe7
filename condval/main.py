"""
FastAPI application for evaluating, comparing and sweeping rule trees.

Run locally with ``uv run dev``; the API is served under /api/v1 and
Prometheus metrics under /metrics.
"""

import hmac
import logging
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from condval.api.routes.evaluation import router as evaluation_router
from condval.api.routes.health import router as health_router
from condval.core.config import settings
from condval.core.errors import CondvalError, get_status_code
from condval.core.observability import (
    ObservabilityMiddleware,
    configure_structured_logging,
    extract_request_context,
    metrics_endpoint,
)

if settings.observability_structured_logs:
    configure_structured_logging(settings.app_log_level)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def _error_response(
    status_code: int,
    error: str,
    message: Any,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "details": details or {}},
        headers=headers,
    )


# ============================================================================
# Exception Handlers
# ============================================================================


async def handle_condval_error(request: Request, exc: CondvalError) -> JSONResponse:
    """
    Render a domain error with the status code of its kind.

    NoMatchError is a normal outcome and logs at info; other 4xx errors
    point at a broken configuration and log as warnings.
    """
    status_code = get_status_code(exc)
    name = exc.__class__.__name__
    context = {"error_kind": exc.kind.value, "details": exc.details}
    context.update(extract_request_context(request))

    if status_code >= 500:
        log = logger.error
    elif status_code == status.HTTP_404_NOT_FOUND:
        log = logger.info
    else:
        log = logger.warning
    log("%s: %s", name, exc.message, extra=context)

    return _error_response(status_code, name, exc.message, exc.details)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "HTTP %d: %s", exc.status_code, exc.detail, extra=extract_request_context(request)
        )
    return _error_response(exc.status_code, "HTTPException", exc.detail, headers=exc.headers)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback and hide internals from the client."""
    logger.error(
        "Unhandled %s: %s",
        type(exc).__name__,
        exc,
        exc_info=True,
        extra=extract_request_context(request),
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "InternalServerError",
        "An unexpected error occurred",
    )


# ============================================================================
# Metrics
# ============================================================================


def require_metrics_token(request: Request) -> None:
    """Check X-Metrics-Token when CONDVAL_METRICS_TOKEN is set."""
    expected = settings.metrics_token
    if not expected:
        return

    supplied = request.headers.get("X-Metrics-Token") or ""
    if not hmac.compare_digest(supplied, expected):
        logger.warning(
            "Rejected metrics scrape",
            extra={
                "security_event": True,
                "event_type": "METRICS_ACCESS_DENIED",
                "client_ip": request.client.host if request.client else "unknown",
            },
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid metrics token")


async def prometheus_metrics(_: None = Depends(require_metrics_token)) -> Response:
    return metrics_endpoint()


def create_app() -> FastAPI:
    """Build the application: middleware, error handlers, routers, /metrics."""
    app = FastAPI(
        title=settings.app_name,
        description="Ordered condition/result rule tree evaluation",
        version="0.1.0",
    )

    # Request ids, access logs and HTTP metrics
    if settings.observability_enabled:
        app.add_middleware(
            ObservabilityMiddleware,
            request_id_header=settings.observability_request_id_header,
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CondvalError, handle_condval_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(evaluation_router, prefix=API_PREFIX)

    if settings.observability_enabled:
        app.add_api_route("/metrics", prometheus_metrics, methods=["GET"], include_in_schema=False)

    return app


app = create_app()
