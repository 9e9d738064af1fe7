"""
Unit tests for observability features.

Tests cover:
- Request correlation ID generation and context
- Structured JSON log formatting
- Prometheus metrics collection
- Request tracking middleware
"""

import json
import logging
import sys

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry, generate_latest

from condval.core.observability import (
    Metrics,
    ObservabilityMiddleware,
    StructuredFormatter,
    generate_request_id,
    get_request_id,
    metrics,
    metrics_endpoint,
    set_correlation_id,
)


class TestRequestId:
    @pytest.mark.anyio
    async def test_generate_request_id_is_unique(self):
        assert generate_request_id() != generate_request_id()

    @pytest.mark.anyio
    async def test_set_and_get(self):
        set_correlation_id("req-123")
        assert get_request_id() == "req-123"


class TestStructuredFormatter:
    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord(
            name="condval.test",
            level=logging.WARNING,
            pathname=__file__,
            lineno=10,
            msg="Rule %d matched",
            args=(2,),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_fields(self):
        set_correlation_id("req-fmt")
        entry = json.loads(StructuredFormatter().format(self._record()))
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "condval.test"
        assert entry["message"] == "Rule 2 matched"
        assert entry["request_id"] == "req-fmt"
        assert "timestamp" in entry

    def test_extra_fields(self):
        entry = json.loads(
            StructuredFormatter().format(self._record(error_kind="NO_MATCH", details={"a": 1}))
        )
        assert entry["extra"]["error_kind"] == "NO_MATCH"
        assert entry["extra"]["details"] == {"a": 1}

    def test_exception_info(self):
        try:
            raise ValueError("bad value")
        except ValueError:
            record = self._record()
            record.exc_info = sys.exc_info()
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["exception"] == {"type": "ValueError", "message": "bad value"}


class TestMetrics:
    def test_record_evaluation(self):
        registry = CollectorRegistry()
        local = Metrics(registry)
        local.record_evaluation("match", 0.001)
        local.record_evaluation("no_match", 0.002)
        output = generate_latest(registry).decode()
        assert 'condval_evaluations_total{outcome="match"} 1.0' in output
        assert 'condval_evaluations_total{outcome="no_match"} 1.0' in output
        assert "condval_evaluation_duration_seconds_count 2.0" in output

    def test_metrics_endpoint_serves_global_registry(self):
        metrics.coverage_sweeps_total.labels(status="success")
        response = metrics_endpoint()
        assert response.media_type.startswith("text/plain")
        assert b"condval_coverage_sweeps_total" in response.body


class TestMiddleware:
    @pytest.fixture
    def app_and_metrics(self):
        registry = CollectorRegistry()
        local = Metrics(registry)
        app = FastAPI()
        app.add_middleware(ObservabilityMiddleware, metrics_instance=local)

        @app.get("/ping")
        async def ping():
            return {"request_id": get_request_id()}

        return app, registry

    def test_generates_request_id_header(self, app_and_metrics):
        app, _ = app_and_metrics
        response = TestClient(app).get("/ping")
        assert response.status_code == 200
        assert response.headers["X-Request-ID"]

    def test_propagates_incoming_request_id(self, app_and_metrics):
        app, _ = app_and_metrics
        response = TestClient(app).get("/ping", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"
        assert response.json() == {"request_id": "abc-123"}

    def test_records_request_metrics(self, app_and_metrics):
        app, registry = app_and_metrics
        TestClient(app).get("/ping")
        output = generate_latest(registry).decode()
        assert 'http_requests_total{method="GET",route="/ping",status_code="200"} 1.0' in output
