"""Tests for observability middleware."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from openaq_dashboard.core.metrics import metrics
from openaq_dashboard.core.middleware import ObservabilityMiddleware
from openaq_dashboard.core.schemas import RateLimitHeaders


@pytest.fixture
def app():
    test_app = FastAPI()
    test_app.add_middleware(ObservabilityMiddleware)

    @test_app.get("/ok")
    async def ok_endpoint():
        return {"message": "ok"}

    @test_app.get("/error")
    async def error_endpoint():
        raise ValueError("Test error")

    return test_app


@pytest.fixture
def http(app):
    return TestClient(app, raise_server_exceptions=False)


def test_middleware_adds_request_id(http):
    response = http.get("/ok")
    assert len(response.headers["x-request-id"]) > 0


def test_middleware_preserves_provided_request_id(http):
    response = http.get("/ok", headers={"X-Request-ID": "req-42"})
    assert response.headers["x-request-id"] == "req-42"


def test_middleware_forwards_quota(http):
    """Last known OpenAQ quota is echoed on every response."""
    metrics.record_rate_limit(RateLimitHeaders(used="3", remaining="57", reset="40"))
    response = http.get("/ok")
    assert response.headers["x-openaq-ratelimit-remaining"] == "57"
    assert response.headers["x-openaq-ratelimit-used"] == "3"
    assert response.headers["x-openaq-ratelimit-reset"] == "40"


def test_middleware_counts_requests_and_latency(http):
    initial_count = metrics.total_requests
    initial_latencies = len(metrics._latencies)
    http.get("/ok")
    assert metrics.total_requests == initial_count + 1
    assert len(metrics._latencies) in (initial_latencies + 1, metrics._max_samples)


def test_middleware_counts_server_errors(http):
    initial_errors = metrics.total_errors
    response = http.get("/error")
    assert response.status_code == 500
    assert metrics.total_errors == initial_errors + 1
