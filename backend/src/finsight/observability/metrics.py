"""Prometheus metrics instrumentation for FastAPI."""

import time
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.responses import Response

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)
REQUEST_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "In-progress HTTP requests",
    ["method"],
)

# ----- Chat engine -----
TOOL_CALLS = Counter(
    "finsight_tool_calls_total",
    "Tool invocations requested by the model",
    ["tool", "outcome"],
)
PROVIDER_ERRORS = Counter(
    "finsight_provider_errors_total",
    "LLM vendor failures",
    ["provider"],
)
PERSISTENCE_FAILURES = Counter(
    "finsight_persistence_failures_total",
    "Chat turns whose response messages could not be saved",
)
CHAT_TURNS = Counter(
    "finsight_chat_turns_total",
    "Chat turns by terminal state",
    ["provider", "state"],
)


def _get_route_path(request: Request) -> str:
    route: Any | None = request.scope.get("route")
    path = getattr(route, "path", None) if route is not None else None
    if isinstance(path, str) and path:
        return path
    return "unknown"


def setup_metrics(app: FastAPI) -> None:
    """Attach Prometheus metrics and /metrics endpoint to the app."""

    @app.middleware("http")
    async def metrics_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        method = request.method
        REQUEST_IN_PROGRESS.labels(method=method).inc()
        start = time.perf_counter()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            # For streamed responses this measures time to first byte
            duration = time.perf_counter() - start
            path = _get_route_path(request)
            status_code = str(response.status_code) if response else "500"
            REQUEST_LATENCY.labels(method=method, path=path).observe(duration)
            REQUEST_COUNT.labels(method=method, path=path, status_code=status_code).inc()
            REQUEST_IN_PROGRESS.labels(method=method).dec()

    @app.get("/metrics")
    async def metrics() -> Response:
        data = generate_latest()
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)
