"""Prometheus registry shared by the HTTP layer and caddy telemetry."""

from __future__ import annotations

import os
import time
from typing import Any, Awaitable, Callable, MutableMapping

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

Scope = MutableMapping[str, Any]
Message = MutableMapping[str, Any]
ASGIApp = Callable[..., Awaitable[None]]

REGISTRY = CollectorRegistry()

HTTP_REQUESTS = Counter(
    "puregolf_http_requests_total",
    "HTTP requests served, by route template",
    labelnames=("route", "method", "status"),
    registry=REGISTRY,
)
HTTP_DURATION = Histogram(
    "puregolf_http_request_duration_seconds",
    "Wall time spent serving a request",
    labelnames=("route", "method"),
    registry=REGISTRY,
)

BUILD_VERSION = os.getenv("BUILD_VERSION", "dev")
GIT_SHA = os.getenv("GIT_SHA", "unknown")


async def metrics_response(_request: Request | None = None) -> Response:
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


def route_label(scope: Scope) -> str:
    """Matched route template (``/caddy/personalization/{user_id}``), else the raw path."""
    template = getattr(scope.get("route"), "path", None)
    if isinstance(template, str) and template:
        return template
    return scope.get("path", "")


class HttpMetricsMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive, send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        status = {"code": 500}

        async def send_with_status(message: Message) -> None:
            if message["type"] == "http.response.start":
                status["code"] = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_with_status)
        finally:
            route = route_label(scope)
            method = scope.get("method", "GET")
            HTTP_DURATION.labels(route=route, method=method).observe(
                time.perf_counter() - started
            )
            HTTP_REQUESTS.labels(route=route, method=method, status=str(status["code"])).inc()


__all__ = [
    "BUILD_VERSION",
    "GIT_SHA",
    "HTTP_DURATION",
    "HTTP_REQUESTS",
    "HttpMetricsMiddleware",
    "REGISTRY",
    "metrics_response",
    "route_label",
]
