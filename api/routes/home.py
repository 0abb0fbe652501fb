"""
Groundwork - Home Routes

Greeting endpoint, health check and the static UI files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict

from fastapi import APIRouter, FastAPI, Request
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from starlette.responses import JSONResponse, PlainTextResponse

from config import Config
from core.errors import LivenessError

router = APIRouter()

STATIC_PREFIX = "/static"
HEALTH_PING_TIMEOUT_SECONDS = 2.0


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    components: Dict[str, str]


def static_files_dir(config: Config) -> Path:
    return Path(config.app_base_dir) / "api" / "ui" / "public"


def mount_static(app: FastAPI, config: Config) -> None:
    """Serve ``api/ui/public`` under the application base dir at ``/static``."""
    if any(getattr(route, "path", None) == STATIC_PREFIX for route in app.router.routes):
        return
    app.mount(
        STATIC_PREFIX,
        StaticFiles(directory=static_files_dir(config), check_dir=False),
        name="static",
    )


@router.get("/", response_class=PlainTextResponse)
async def hello(request: Request) -> str:
    """Greet the caller by ``firstName`` and ``lastName`` query parameters."""
    first_name = request.query_params.get("firstName", "")
    last_name = request.query_params.get("lastName", "")
    return f"Hello {first_name} {last_name}!"


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> JSONResponse:
    """Report database liveness; 503 when the pool does not answer."""
    db = request.app.state.container.db
    database = "healthy"
    if db is None:
        database = "unavailable"
    else:
        try:
            await db.ping(HEALTH_PING_TIMEOUT_SECONDS)
        except LivenessError:
            database = "unavailable"

    healthy = database == "healthy"
    payload = HealthResponse(
        status="healthy" if healthy else "degraded",
        components={"database": database},
    )
    return JSONResponse(payload.model_dump(), status_code=200 if healthy else 503)
