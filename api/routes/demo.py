"""
Groundwork - Demo Routes

Endpoints showing each kind of response the ResponseBuilder produces.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from starlette.responses import Response

router = APIRouter(prefix="/api/demo")


def _builder(request: Request):
    return request.app.state.container.response_builder


@router.get("/success")
async def success(request: Request) -> Response:
    return _builder(request).success({
        "message": "ResponseBuilder service is working correctly",
        "timestamp": datetime.now(timezone.utc),
        "status": "success",
        "service": "ResponseBuilder",
    })


@router.get("/text")
async def text(request: Request) -> Response:
    return _builder(request).text(
        "This is a plain text response generated using the ResponseBuilder service!"
    )


@router.get("/html")
async def html(request: Request) -> Response:
    generated_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    return _builder(request).html(
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n    <title>ResponseBuilder Demo</title>\n</head>\n"
        "<body>\n"
        "    <h1>ResponseBuilder Service Demo</h1>\n"
        "    <p>This HTML response was generated using the ResponseBuilder service.</p>\n"
        f"    <p>Generated at: {generated_at}</p>\n"
        "</body>\n"
        "</html>"
    )


@router.get("/error/400")
async def bad_request(request: Request) -> Response:
    return _builder(request).bad_request("This is a demonstration of a 400 Bad Request error")


@router.get("/error/404")
async def not_found(request: Request) -> Response:
    return _builder(request).not_found("The requested demo resource was not found")


@router.get("/error/500")
async def internal_error(request: Request) -> Response:
    simulated = RuntimeError("demonstration of internal server error with structured logging")
    return _builder(request).internal_server_error(simulated, request)


@router.get("/created")
async def created(request: Request) -> Response:
    return _builder(request).created({
        "id": "demo-123",
        "name": "Demo Resource",
        "createdAt": datetime.now(timezone.utc),
        "status": "created",
    })
