"""Unit tests for Prometheus metrics."""

from fastapi import Request
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY
from starlette.routing import Route

from folio.api.ratelimit import ChatRateLimiter
from folio.main import create_app
from folio.observability.metrics import route_template


def test_metrics_endpoint_returns_text() -> None:
    client = TestClient(create_app())
    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")


def test_chat_counters_are_exposed() -> None:
    client = TestClient(create_app())
    client.get("/api/health")

    body = client.get("/metrics").text

    assert "chat_model_turns_total" in body
    assert 'http_requests_total{method="GET",path="/api/health",status_code="200"}' in body


def test_denied_requests_increment_rate_limited_counter() -> None:
    before = REGISTRY.get_sample_value("chat_rate_limited_total") or 0.0
    limiter = ChatRateLimiter("1/minute")
    limiter.check("10.0.0.1")
    limiter.check("10.0.0.1")

    assert REGISTRY.get_sample_value("chat_rate_limited_total") == before + 1


class TestRouteTemplate:
    """Path labels use the full template whatever the route object carries."""

    @staticmethod
    def _request(route: Route | None, path: str) -> Request:
        return Request({"type": "http", "path": path, "route": route, "headers": []})

    def test_route_holding_full_path(self) -> None:
        route = Route("/api/health", endpoint=lambda request: None)

        assert route_template(self._request(route, "/api/health")) == "/api/health"

    def test_route_holding_only_its_own_segment(self) -> None:
        route = Route("/health", endpoint=lambda request: None)

        assert route_template(self._request(route, "/api/health")) == "/api/health"

    def test_path_parameters_stay_templated(self) -> None:
        route = Route("/projects/{slug}", endpoint=lambda request: None)

        label = route_template(self._request(route, "/api/projects/search-ranker"))

        assert label == "/api/projects/{slug}"

    def test_unmatched_request(self) -> None:
        assert route_template(self._request(None, "/nowhere")) == "unknown"


def test_chat_route_is_labelled_with_api_prefix(client) -> None:
    client.post("/api/chat", content="not json")

    body = client.get("/metrics").text

    assert 'http_requests_total{method="POST",path="/api/chat",status_code="400"}' in body
