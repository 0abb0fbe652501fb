"""
Groundwork - Main CLI Application

Command-line interface: run the HTTP server, check that every service
starts, and manage database migrations.

This is the outermost composition point: container construction errors
are reported here and turned into exit code 1.
"""
import asyncio
import logging
import sys
from typing import Awaitable, Callable, TypeVar

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from api.server import run_server
from core.errors import ContainerError, GroundworkError, TeardownError
from di.container import Container
from migrations.runner import app as migrations_app
from observability.logging import install_default_logger, uninstall_default_logger

T = TypeVar("T")

logger = logging.getLogger("groundwork.cli")

# Initialize app
app = typer.Typer(
    name="groundwork",
    help="Groundwork - web application starter kit",
    add_completion=False,
)
app.add_typer(migrations_app, name="migrate")

console = Console()
error_console = Console(stderr=True)


async def with_container(work: Callable[[Container], Awaitable[T]]) -> T:
    """
    Build the container, route global logging to it, run ``work`` and
    always tear everything down again.

    A teardown failure is raised only when ``work`` succeeded; otherwise it
    is logged and the error from ``work`` propagates.
    """
    container = await Container.create()
    install_default_logger(container.logger_service)
    try:
        result = await work(container)
    except BaseException:
        uninstall_default_logger()
        try:
            await container.close()
        except TeardownError as exc:
            logger.error("Failed to close container after error: %s", exc)
        raise

    uninstall_default_logger()
    await container.close()
    return result


def fail(message: str) -> typer.Exit:
    """Print an error without markup or wrapping and return the exit to raise."""
    error_console.print(message, style="red", markup=False, soft_wrap=True)
    return typer.Exit(1)


def run_command(work: Callable[[Container], Awaitable[T]]) -> T:
    """Run ``work`` with a container, translating failures into exit codes."""
    try:
        return asyncio.run(with_container(work))
    except ContainerError as exc:
        raise fail(f"Could not start CLI application. Error building container registry: {exc}")
    except TeardownError as exc:
        raise fail(f"Shutdown failed: {exc}")
    except GroundworkError as exc:
        raise fail(f"Error: {exc}")
    except Exception as exc:
        raise fail(f"Unexpected error: {exc!r}")


@app.command()
def serve():
    """Start the HTTP server and block until SIGINT/SIGTERM."""
    run_command(run_server)


async def _check(container: Container) -> Table:
    table = Table(title="Component Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    config = container.config
    table.add_row("Config", "✓ Ready", f"APP_ENV={config.app_env}")
    table.add_row("Logger", "✓ Ready", f"{config.log_path} ({logging.getLevelName(container.logger_service.level)})")
    await container.db.ping()
    table.add_row(
        "Database",
        "✓ Ready",
        container.db.engine.url.render_as_string(hide_password=True),
    )
    table.add_row("Response Builder", "✓ Ready", f"{len(container.response_builder.error_categories)} error categories")
    return table


@app.command()
def check():
    """Build every service, ping the database and report component status."""
    console.print(Panel.fit(
        "[bold blue]Groundwork - Service Check[/bold blue]",
        border_style="blue"
    ))
    table = run_command(_check)
    console.print(table)


def main():
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
