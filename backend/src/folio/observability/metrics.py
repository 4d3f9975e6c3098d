"""Prometheus metrics for the HTTP surface and the chat loop."""

import time
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.responses import Response

# ----- HTTP -----
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)
REQUEST_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "In-progress HTTP requests",
    ["method"],
)
RATE_LIMITED = Counter(
    "chat_rate_limited_total",
    "Chat requests rejected by the per-client rate limit",
)

# ----- Chat loop -----
MODEL_TURNS = Counter(
    "chat_model_turns_total",
    "Model calls made by the chat loop",
    ["provider"],
)
TOOL_INVOCATIONS = Counter(
    "chat_tool_invocations_total",
    "Tool invocations requested by the model",
    ["tool", "outcome"],
)
CHAT_OUTCOMES = Counter(
    "chat_requests_total",
    "Chat requests by how the loop ended",
    ["outcome"],
)
CHAT_ITERATIONS = Histogram(
    "chat_loop_iterations",
    "Model turns needed to finish one chat request",
    buckets=(1, 2, 3, 4, 5),
)


def route_template(request: Request) -> str:
    """Matched route template with its router prefix, e.g. ``/api/health``.

    Templates keep label cardinality bounded. Depending on the FastAPI
    version, a route from an included router may know only its own part of
    the path; the static prefix in front of it is taken from the request path.
    """
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    if not isinstance(template, str) or not template:
        return "unknown"

    regex = getattr(route, "path_regex", None)
    path = request.scope.get("path", "")
    if regex is None or not isinstance(path, str):
        return template
    for index, char in enumerate(path):
        if char == "/" and regex.match(path[index:]):
            return path[:index] + template
    return template


def setup_metrics(app: FastAPI) -> None:
    """Attach the timing middleware and the /metrics endpoint."""

    @app.middleware("http")
    async def metrics_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        method = request.method
        status_code = "500"
        REQUEST_IN_PROGRESS.labels(method=method).inc()
        started = time.perf_counter()
        try:
            response = await call_next(request)
            status_code = str(response.status_code)
            return response
        finally:
            path = route_template(request)
            REQUEST_LATENCY.labels(method=method, path=path).observe(
                time.perf_counter() - started
            )
            REQUEST_COUNT.labels(method=method, path=path, status_code=status_code).inc()
            REQUEST_IN_PROGRESS.labels(method=method).dec()

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
