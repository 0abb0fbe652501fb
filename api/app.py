"""
Groundwork - FastAPI Application

Application factory wiring routes, middleware and exception handlers to a
service container.

When no container is injected the lifespan builds one at startup and closes
it at shutdown; an injected container stays owned by the caller.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from starlette.responses import Response

from api.middleware import add_middleware
from api.routes import register_routes
from api.routes.home import mount_static
from di.container import Container
from domain.errors import DomainError


async def domain_error_handler(request: Request, exc: Exception) -> Response:
    """Business rule violations become 400 responses."""
    return request.app.state.container.response_builder.error(exc, request)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the container unless one was injected, then close what we built."""
    owned: Optional[Container] = None
    if app.state.container is None:
        owned = await Container.create()
        app.state.container = owned
        mount_static(app, owned.config)

    logger = app.state.container.logger_service.get_logger("groundwork.api")
    logger.info("application startup", owns_container=owned is not None)
    try:
        yield
    finally:
        logger.info("application shutdown")
        if owned is not None:
            app.state.container = None
            await owned.close()


def create_app(container: Optional[Container] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Groundwork",
        description="Web application starter kit",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.container = container
    if container is not None:
        mount_static(app, container.config)

    register_routes(app)
    app.add_exception_handler(DomainError, domain_error_handler)
    add_middleware(app)

    return app


app = create_app()
