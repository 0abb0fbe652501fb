"""
Groundwork - Configuration

Centralized configuration for the application, the HTTP server and the
database pool. Values come from environment variables, optionally seeded
from a cascade of ``.env`` files under ``APP_BASE_DIR``.
"""
import logging
import os
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv

from core.config_validator import validate_app_config
from core.errors import ConfigurationError

LOG_PATH_STDOUT = "stdout"
LOG_PATH_STDERR = "stderr"

DEFAULT_MIGRATIONS_DIR = str(Path(__file__).resolve().parent / "migrations")

LOG_LEVELS: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_log_level(value: str) -> int:
    """Map ``debug|info|warn|error`` to a logging level; anything else is WARNING."""
    return LOG_LEVELS.get(value.strip().lower(), logging.WARNING)


def parse_duration(value: str) -> float:
    """
    Parse a duration into seconds.

    Accepts plain seconds (``"15"``, ``"2.5"``) or unit strings such as
    ``"500ms"``, ``"15s"``, ``"3m"``, ``"1h"`` and ``"1m30s"``.
    """
    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position == 0 or position != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}", config_key=name) from exc


def _env_duration(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return parse_duration(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a duration, got {raw!r}", config_key=name) from exc


@dataclass
class HttpServerConfig:
    """HTTP server configuration."""
    bind_address: str = field(default_factory=lambda: os.getenv("HTTP_BIND_ADDRESS", "0.0.0.0"))
    bind_port: str = field(default_factory=lambda: os.getenv("HTTP_BIND_PORT", "8080"))
    max_header_bytes: int = field(default_factory=lambda: _env_int("HTTP_MAX_HEADER_BYTES", 16384))
    # seconds
    request_timeout: float = field(default_factory=lambda: _env_duration("HTTP_REQUEST_TIMEOUT", 15.0))


@dataclass
class DatabaseConfig:
    """Database connection pool configuration."""
    dsn: str = field(default_factory=lambda: os.getenv("DB_DSN", ""))
    max_idle_connections: int = field(default_factory=lambda: _env_int("DB_MAX_IDLE_CONNECTIONS", 2))
    max_open_connections: int = field(default_factory=lambda: _env_int("DB_MAX_OPEN_CONNECTIONS", 10))
    connection_max_idle_time: float = field(
        default_factory=lambda: _env_duration("DB_CONNECTION_MAX_IDLE_TIME", 180.0)
    )
    connection_max_lifetime: float = field(
        default_factory=lambda: _env_duration("DB_CONNECTION_MAX_LIFETIME", 180.0)
    )
    migrations_dir_path: str = field(
        default_factory=lambda: os.getenv("DB_MIGRATIONS_DIR_PATH") or DEFAULT_MIGRATIONS_DIR
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary without the DSN, which may carry credentials."""
        result = asdict(self)
        result.pop("dsn")
        return result


@dataclass
class Config:
    """Main configuration class combining all sub-configs."""
    app_base_dir: str = field(default_factory=lambda: os.getenv("APP_BASE_DIR") or os.getcwd())
    app_env: str = field(default_factory=lambda: os.getenv("APP_ENV", ""))
    log_level: int = field(default_factory=lambda: parse_log_level(os.getenv("APP_LOG_LEVEL", "warn")))
    log_path: str = field(default_factory=lambda: os.getenv("APP_LOG_PATH", LOG_PATH_STDOUT))

    http_server: HttpServerConfig = field(default_factory=HttpServerConfig)
    db: DatabaseConfig = field(default_factory=DatabaseConfig)

    @property
    def is_production(self) -> bool:
        return self.app_env == "prod"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary (excluding sensitive values)."""
        return {
            "app_base_dir": self.app_base_dir,
            "app_env": self.app_env,
            "log_level": logging.getLevelName(self.log_level),
            "log_path": self.log_path,
            "http_server": asdict(self.http_server),
            "db": self.db.to_dict(),
        }


def env_file_cascade(base_dir: str, app_env: str) -> List[Path]:
    """
    List the env files to load, highest precedence first.

    ``.env.local`` is skipped for the test environment so local overrides
    never leak into test runs.
    """
    names: List[str] = []
    if app_env:
        names.append(f".env.{app_env}.local")
    if app_env != "test":
        names.append(".env.local")
    if app_env:
        names.append(f".env.{app_env}")
    names.append(".env")
    return [Path(base_dir) / name for name in names]


def load_env_files(base_dir: str, app_env: str) -> List[Path]:
    """
    Load the env file cascade without overriding variables already set.

    Returns:
        The files that were found and loaded
    """
    loaded: List[Path] = []
    for path in env_file_cascade(base_dir, app_env):
        if not path.is_file():
            continue
        try:
            load_dotenv(path, override=False)
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigurationError(
                f"error occurred while trying to load env file: {path}. Error message: {exc}",
                config_key=str(path),
            ) from exc
        loaded.append(path)
    return loaded


def build_config(load_env: bool = True) -> Config:
    """
    Build and validate the configuration from the environment.

    Args:
        load_env: Load the ``.env`` cascade under ``APP_BASE_DIR`` first

    Raises:
        ConfigurationError: On unreadable env files, malformed values or
            failed validation
    """
    if load_env:
        base_dir = os.getenv("APP_BASE_DIR") or os.getcwd()
        load_env_files(base_dir, os.getenv("APP_ENV", ""))

    config = Config()
    validate_app_config(config).raise_if_invalid()
    return config


class ConfigService:
    """Owns the validated configuration for the lifetime of a container."""

    def __init__(self, config: Config):
        self._config = config

    @classmethod
    def create(cls, load_env: bool = True) -> "ConfigService":
        try:
            return cls(build_config(load_env=load_env))
        except ConfigurationError as exc:
            raise ConfigurationError(f"failed to build configuration: {exc}", cause=exc) from exc

    @property
    def config(self) -> Config:
        return self._config
