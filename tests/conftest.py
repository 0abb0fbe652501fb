"""
Groundwork - Test Configuration

Pytest fixtures shared by all tests: an isolated environment pointing at a
temporary base dir, log file and sqlite database, plus a migrated database.
"""
import io
import logging
import os
from pathlib import Path
from typing import Dict, Generator

import pytest

from observability.logging import LoggerService, uninstall_default_logger

ENV_VARS = (
    "APP_BASE_DIR",
    "APP_ENV",
    "APP_LOG_LEVEL",
    "APP_LOG_PATH",
    "HTTP_BIND_ADDRESS",
    "HTTP_BIND_PORT",
    "HTTP_MAX_HEADER_BYTES",
    "HTTP_REQUEST_TIMEOUT",
    "DB_DSN",
    "DB_MAX_IDLE_CONNECTIONS",
    "DB_MAX_OPEN_CONNECTIONS",
    "DB_CONNECTION_MAX_IDLE_TIME",
    "DB_CONNECTION_MAX_LIFETIME",
    "DB_MIGRATIONS_DIR_PATH",
)


def sqlite_dsn(path: Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Remove all Groundwork variables and restore the full environment afterwards."""
    saved = dict(os.environ)
    for name in ENV_VARS:
        os.environ.pop(name, None)
    try:
        yield
    finally:
        os.environ.clear()
        os.environ.update(saved)
        uninstall_default_logger()


@pytest.fixture
def app_env(clean_env, tmp_path: Path) -> Dict[str, str]:
    """A complete, valid test environment backed by files under tmp_path."""
    base_dir = tmp_path / "app"
    base_dir.mkdir()
    values = {
        "APP_BASE_DIR": str(base_dir),
        "APP_ENV": "test",
        "APP_LOG_LEVEL": "debug",
        "APP_LOG_PATH": str(tmp_path / "logs" / "app.log"),
        "DB_DSN": sqlite_dsn(tmp_path / "app.db"),
    }
    os.environ.update(values)
    return values


@pytest.fixture
def unreachable_db_env(app_env, tmp_path: Path) -> Dict[str, str]:
    """Same environment, but the database file lives in a missing directory."""
    dsn = sqlite_dsn(tmp_path / "missing" / "nested" / "app.db")
    os.environ["DB_DSN"] = dsn
    return {**app_env, "DB_DSN": dsn}


@pytest.fixture
def migrated_db(app_env) -> Dict[str, str]:
    """Test bootstrap: apply every migration to the test database."""
    from migrations.runner import run_migrations

    output = io.StringIO()
    assert run_migrations(["up"], output=output) == 0
    return app_env


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger_service(log_stream) -> LoggerService:
    """Logger service rendering JSON lines into an in-memory stream."""
    return LoggerService(log_stream, level=logging.DEBUG, environment="test")


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "integration: tests that use a real (sqlite) database")
