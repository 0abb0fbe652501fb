"""
Groundwork - Migrations Runner

Command-line runner for the alembic revisions in this package.

Every command that touches the database builds its own small container
(one pooled connection), holds the migrations lock for its whole run and
always closes the container afterwards. Revision history is recorded in
the ``migration_executions`` table.

Usage:
    python -m migrations up
    python -m migrations down --steps 2
    python -m migrations status
    python -m migrations new "add users table"
"""
import asyncio
import logging
import sys
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, TextIO

import typer
from alembic import command
from alembic.config import Config as AlembicConfig
from rich.console import Console
from sqlalchemy.engine import Connection

from config import ConfigService
from core.errors import GroundworkError, MigrationError, TeardownError
from di.container import Container
from migrations.lock import MigrationsLock
from observability.logging import install_default_logger, uninstall_default_logger

logger = logging.getLogger("groundwork.migrations.runner")

VERSION_TABLE = "migration_executions"

# one pooled connection, recycled after ten minutes
MIGRATIONS_DB_OVERRIDES: Dict[str, Any] = {
    "max_idle_connections": 1,
    "max_open_connections": 1,
    "connection_max_idle_time": 600.0,
    "connection_max_lifetime": 600.0,
}

app = typer.Typer(
    name="migrate",
    help="Apply, revert and create database migrations",
    add_completion=False,
)

error_console = Console(stderr=True)


def alembic_config(
    script_location: str,
    output: Optional[TextIO] = None,
    connection: Optional[Connection] = None,
) -> AlembicConfig:
    """Build an alembic config in code; no ``alembic.ini`` is needed."""
    cfg = AlembicConfig(stdout=output or sys.stdout)
    cfg.set_main_option("script_location", script_location)
    cfg.set_main_option("version_table", VERSION_TABLE)
    if connection is not None:
        cfg.attributes["connection"] = connection
    return cfg


AlembicCommand = Callable[[AlembicConfig], None]


async def run_with_database(operation: AlembicCommand, output: Optional[TextIO] = None) -> None:
    """
    Run an alembic command under the lock on a migrations container.

    Raises:
        MigrationLockedError: Another migrations process is running
        ContainerError: The container could not be built
        MigrationError: The alembic command failed
    """
    with MigrationsLock():
        container = await Container.create(db_overrides=MIGRATIONS_DB_OVERRIDES)
        install_default_logger(container.logger_service)
        log = container.logger_service.get_logger("groundwork.migrations")
        try:
            script_location = container.config.db.migrations_dir_path

            def run(connection: Connection) -> None:
                operation(alembic_config(script_location, output, connection))

            async with container.db.engine.begin() as connection:
                await connection.run_sync(run)
        except GroundworkError:
            raise
        except Exception as exc:
            log.error("migration command failed", error=exc)
            raise MigrationError(f"migration command failed: {exc}", cause=exc) from exc
        finally:
            uninstall_default_logger()
            try:
                await container.close()
            except TeardownError as exc:
                logger.error("Failed to close migrations container: %s", exc)


def _output(ctx: typer.Context) -> TextIO:
    obj = ctx.obj or {}
    return obj.get("output") or sys.stdout


def _execute(ctx: typer.Context, operation: AlembicCommand) -> None:
    try:
        asyncio.run(run_with_database(operation, _output(ctx)))
    except GroundworkError as exc:
        error_console.print(f"Migrations failed: {exc}", style="red", markup=False, soft_wrap=True)
        raise typer.Exit(1)


@app.command()
def up(
    ctx: typer.Context,
    steps: int = typer.Option(0, "--steps", "-s", min=0, help="Number of revisions to apply (0 = all)"),
):
    """Apply pending migrations."""
    target = f"+{steps}" if steps else "head"
    _execute(ctx, lambda cfg: command.upgrade(cfg, target))


@app.command()
def down(
    ctx: typer.Context,
    steps: int = typer.Option(1, "--steps", "-s", min=1, help="Number of revisions to revert"),
    all_: bool = typer.Option(False, "--all", help="Revert every migration"),
):
    """Revert applied migrations, the latest one by default."""
    target = "base" if all_ else f"-{steps}"
    _execute(ctx, lambda cfg: command.downgrade(cfg, target))


@app.command()
def status(ctx: typer.Context):
    """Show the current revision of the database."""
    _execute(ctx, lambda cfg: command.current(cfg, verbose=True))


@app.command()
def history(ctx: typer.Context):
    """List every revision, marking the current one."""
    _execute(ctx, lambda cfg: command.history(cfg, indicate_current=True))


@app.command()
def new(
    ctx: typer.Context,
    message: str = typer.Argument(..., help="Short description of the change"),
):
    """Create an empty revision file named after the current unix time."""
    try:
        config = ConfigService.create().config
    except GroundworkError as exc:
        error_console.print(f"Migrations failed: {exc}", style="red", markup=False, soft_wrap=True)
        raise typer.Exit(1)

    cfg = alembic_config(config.db.migrations_dir_path, _output(ctx))
    script = command.revision(cfg, message=message, rev_id=str(int(time.time())))
    if script is not None and not isinstance(script, list):
        _output(ctx).write(f"Created {script.path}\n")


def run_migrations(args: Sequence[str], output: Optional[TextIO] = None) -> int:
    """
    Run a migrations command line and return its exit code.

    Nothing is raised to the caller; usage errors and failures are reported
    on stderr.
    """
    cli = typer.main.get_command(app)
    obj: Dict[str, Any] = {"output": output}
    try:
        cli.main(args=list(args), prog_name="migrate", standalone_mode=True, obj=obj)
    except SystemExit as exc:
        if exc.code is None:
            return 0
        return exc.code if isinstance(exc.code, int) else 1
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    sys.exit(run_migrations(sys.argv[1:] if argv is None else argv))
