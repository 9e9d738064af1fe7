"""
Logging, request correlation and Prometheus metrics for condval hosts.

The evaluation engine only uses module loggers. Everything else here is
wired in by the HTTP app (condval.main):

- StructuredFormatter / configure_structured_logging: one JSON object per
  log line, tagged with the current request id
- request id context variable, set per request by ObservabilityMiddleware
- Metrics: HTTP traffic plus evaluation outcomes and coverage sweeps,
  kept in a private registry served at /metrics
"""

import json
import logging
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from fastapi import Request, Response
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

# ============================================================================
# Request Correlation
# ============================================================================

_request_id: ContextVar[str] = ContextVar("condval_request_id", default="")


def generate_request_id() -> str:
    return uuid.uuid4().hex


def get_request_id() -> str:
    """Request id bound to the current context, or an empty string."""
    return _request_id.get()


def set_correlation_id(request_id: str) -> None:
    _request_id.set(request_id)


# ============================================================================
# Structured Logging
# ============================================================================

# Attributes every LogRecord carries; anything else came in through extra=
_STANDARD_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """
    Render log records as single-line JSON.

    Keys: timestamp, level, logger, message, source (file, line, function),
    then request_id, exception and extra when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        request_id = get_request_id()
        if request_id:
            entry["request_id"] = request_id

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {"type": exc_type.__name__, "message": str(exc_value)}

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_ATTRS
        }
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str)


def configure_structured_logging(level: str = "INFO") -> None:
    """Replace root handlers with a single JSON stream handler."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.getLevelName(level.upper()))


# ============================================================================
# Prometheus Metrics
# ============================================================================

_registry = CollectorRegistry()

_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
_EVALUATION_BUCKETS = (0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0)


class Metrics:
    """
    Metric families registered on one CollectorRegistry.

    Tests build their own instance on a fresh registry; the app uses the
    module-level ``metrics``.
    """

    def __init__(self, registry: CollectorRegistry) -> None:
        self.registry = registry

        # HTTP
        self.http_requests_total = Counter(
            "http_requests_total",
            "HTTP requests by method, route and status code",
            ["method", "route", "status_code"],
            registry=registry,
        )
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "route"],
            buckets=_LATENCY_BUCKETS,
            registry=registry,
        )
        self.http_requests_in_progress = Gauge(
            "http_requests_in_progress",
            "HTTP requests being handled",
            ["method"],
            registry=registry,
        )
        self.http_errors_total = Counter(
            "http_errors_total",
            "Requests that raised past the exception handlers",
            ["error_type", "route"],
            registry=registry,
        )

        # Evaluation; outcome is "match" or a lowercase ErrorKind value
        self.evaluations_total = Counter(
            "condval_evaluations_total",
            "Rule tree evaluations by outcome",
            ["outcome"],
            registry=registry,
        )
        self.evaluation_duration_seconds = Histogram(
            "condval_evaluation_duration_seconds",
            "Rule tree evaluation duration in seconds",
            buckets=_EVALUATION_BUCKETS,
            registry=registry,
        )
        self.coverage_sweeps_total = Counter(
            "condval_coverage_sweeps_total",
            "Coverage sweeps by status (success, rejected)",
            ["status"],
            registry=registry,
        )

    def record_evaluation(self, outcome: str, duration: float) -> None:
        self.evaluations_total.labels(outcome=outcome).inc()
        self.evaluation_duration_seconds.observe(duration)

    def record_request(self, method: str, route: str, status_code: int, duration: float) -> None:
        self.http_requests_total.labels(method=method, route=route, status_code=status_code).inc()
        self.http_request_duration_seconds.labels(method=method, route=route).observe(duration)


metrics = Metrics(_registry)


# ============================================================================
# Middleware
# ============================================================================

_request_logger = logging.getLogger("condval.request")


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Bind a request id, time the request and record HTTP metrics.

    The id comes from the configured header when the caller sends one and is
    echoed back on the response. Paths in ``skip_paths`` are measured but not
    logged.
    """

    def __init__(
        self,
        app: ASGIApp,
        metrics_instance: Metrics | None = None,
        skip_paths: list[str] | None = None,
        request_id_header: str = "X-Request-ID",
    ) -> None:
        super().__init__(app)
        self.metrics = metrics_instance or metrics
        self.skip_paths = tuple(skip_paths or ["/api/v1/health", "/metrics"])
        self.request_id_header = request_id_header

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.request_id_header) or generate_request_id()
        set_correlation_id(request_id)

        method = request.method
        route = request.url.path
        in_progress = self.metrics.http_requests_in_progress.labels(method=method)
        in_progress.inc()
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = time.perf_counter() - started
            self.metrics.record_request(method, route, 500, elapsed)
            self.metrics.http_errors_total.labels(error_type=type(e).__name__, route=route).inc()
            _request_logger.error(
                "%s %s failed after %.1f ms",
                method,
                route,
                elapsed * 1000,
                extra={"method": method, "route": route, "status_code": 500},
                exc_info=True,
            )
            raise
        finally:
            in_progress.dec()

        elapsed = time.perf_counter() - started
        self.metrics.record_request(method, route, response.status_code, elapsed)
        response.headers[self.request_id_header] = request_id

        if not route.startswith(self.skip_paths):
            _request_logger.info(
                "%s %s -> %d",
                method,
                route,
                response.status_code,
                extra={
                    "method": method,
                    "route": route,
                    "status_code": response.status_code,
                    "latency_ms": round(elapsed * 1000, 2),
                },
            )
        return response


def metrics_endpoint() -> Response:
    """Prometheus text exposition of the application registry."""
    return Response(
        content=generate_latest(_registry),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


def extract_request_context(request: Request) -> dict[str, Any]:
    """Fields attached to error logs raised while handling a request."""
    return {
        "request_id": get_request_id(),
        "path": request.url.path,
        "method": request.method,
    }
