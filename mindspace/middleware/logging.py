"""Access logging middleware: one colored console line per request."""

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("mindspace.middleware.structured")

REQUEST_ID_HEADER = "X-Request-ID"

_RESET = "\u001b[0m"
_STATUS_COLORS = (
    (500, "\u001b[31m", logging.ERROR),
    (400, "\u001b[33m", logging.WARNING),
    (200, "\u001b[32m", logging.INFO),
)
_DEFAULT_COLOR = "\u001b[36m"


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log its outcome and latency."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        started = time.perf_counter()
        entry: dict[str, Any] = {
            "request_id": request_id,
            "at": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "method": request.method,
            "path": request.url.path,
            "client": request.client.host if request.client else None,
        }

        try:
            response = await call_next(request)
        except Exception as exc:  # pragma: no cover - re-raised after logging
            entry.update(status=500, ms=_elapsed_ms(started), error=repr(exc))
            logger.exception(_console_line(entry))
            raise

        entry.update(status=response.status_code, ms=_elapsed_ms(started))
        response.headers[REQUEST_ID_HEADER] = request_id

        _, level = _style_for(response.status_code)
        logger.log(level, _console_line(entry))
        logger.debug(json.dumps(entry, default=str, separators=(",", ":")))
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def _style_for(status: int) -> tuple[str, int]:
    for floor, color, level in _STATUS_COLORS:
        if status >= floor:
            return color, level
    return _DEFAULT_COLOR, logging.INFO


def _console_line(entry: dict[str, Any]) -> str:
    color, _ = _style_for(entry.get("status") or 0)
    line = (
        f"[{entry['request_id']}] {entry['method']} {entry['path']} "
        f"-> {entry.get('status', '-')} in {entry.get('ms', '-')}ms "
        f"client={entry.get('client') or '-'}"
    )
    return f"{color}{line}{_RESET}"
