"""Prometheus instrumentation for every routed request."""

from __future__ import annotations

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.routing import Mount

from mindspace.telemetry import observe_request

_UNTRACKED_PATHS = frozenset({"/metrics", "/health"})


class TelemetryMiddleware(BaseHTTPMiddleware):
    """Count requests and time them per route template."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path in _UNTRACKED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            observe_request(
                request.method,
                route_label(request),
                status_code,
                time.perf_counter() - started,
            )


def route_label(request: Request) -> str:
    """Route template for API calls; everything served by the static mount shares one label."""

    route = request.scope.get("route")
    if route is None or isinstance(route, Mount):
        return "static"
    return getattr(route, "path", None) or request.url.path
