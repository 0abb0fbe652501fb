"""
Groundwork - HTTP Middleware

Request pipeline wrapped around every route, outermost first:
- RecovererMiddleware: turns unhandled exceptions into a logged 500
- PathNormalizerMiddleware: collapses duplicate slashes, drops a trailing slash
- AccessLogMiddleware: logs method, path, status, duration and client IP

All of them log through the container stored on ``app.state.container``.
"""

from __future__ import annotations

import re
import time
from typing import Optional

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

_DUPLICATE_SLASHES = re.compile(r"/{2,}")


def client_ip(request: Request) -> Optional[str]:
    """Best guess at the caller's address, honouring proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def normalize_path(path: str) -> str:
    """``//api//demo/`` becomes ``/api/demo``; the root stays ``/``."""
    normalized = _DUPLICATE_SLASHES.sub("/", path)
    if len(normalized) > 1 and normalized.endswith("/"):
        normalized = normalized.rstrip("/") or "/"
    return normalized


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Log one line per request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        logger = request.app.state.container.logger_service.get_logger("groundwork.api.access")
        logger.info(
            "request completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(duration * 1000, 3),
            client_ip=client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
        return response


class PathNormalizerMiddleware(BaseHTTPMiddleware):
    """Rewrite the request path before routing."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.scope["path"]
        normalized = normalize_path(path)
        if normalized != path:
            request.scope["path"] = normalized
            request.scope["raw_path"] = normalized.encode("utf-8")
        return await call_next(request)


class RecovererMiddleware(BaseHTTPMiddleware):
    """Last line of defence: no exception escapes to the server."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as error:
            return request.app.state.container.response_builder.internal_server_error(error, request)


def add_middleware(app: FastAPI) -> None:
    """Install the chain; the last one added runs first."""
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(PathNormalizerMiddleware)
    app.add_middleware(RecovererMiddleware)
