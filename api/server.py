"""
Groundwork - HTTP Server

Runs the FastAPI application under uvicorn with limits taken from
``HttpServerConfig``. uvicorn handles SIGINT/SIGTERM and waits up to the
request timeout for in-flight requests before exiting.
"""
import uvicorn

from api.app import create_app
from di.container import Container


def build_server(container: Container) -> uvicorn.Server:
    """Create (but do not start) the uvicorn server for ``container``."""
    http = container.config.http_server
    timeout = max(1, int(round(http.request_timeout)))
    server_config = uvicorn.Config(
        create_app(container),
        host=http.bind_address,
        port=int(http.bind_port),
        timeout_keep_alive=timeout,
        timeout_graceful_shutdown=timeout,
        h11_max_incomplete_event_size=http.max_header_bytes or None,
        log_config=None,
        access_log=False,
        server_header=False,
    )
    return uvicorn.Server(server_config)


async def run_server(container: Container) -> None:
    """Serve until a shutdown signal arrives."""
    logger = container.logger_service.get_logger("groundwork.api.server")
    http = container.config.http_server
    logger.info("starting http server", address=http.bind_address, port=http.bind_port)

    await build_server(container).serve()

    logger.info("http server stopped")
