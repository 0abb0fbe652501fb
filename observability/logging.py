"""
Groundwork - Structured Logging

JSON structured logging built on structlog, owned by a ``LoggerService``
instance rather than by process-global configuration.

Features:
- Log writer selection: stdout, stderr or an append-mode file
- Per-service structlog logger with level filtering and JSON rendering
- Service/environment context on every event
- An explicit compatibility shim that routes stdlib logging (uvicorn,
  SQLAlchemy, alembic) and ``structlog.get_logger()`` to the same writer

Usage:
    from observability.logging import LoggerService

    logger_service = LoggerService.create(config_service)
    logger_service.logger.info("server started", port=8080)
    logger_service.close()
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any, Dict, List, Optional, Protocol

import structlog
from structlog.typing import EventDict, FilteringBoundLogger, Processor, WrappedLogger

from core.errors import ConfigurationError, ResourceAcquisitionError

if TYPE_CHECKING:
    from config import ConfigService

SERVICE_NAME = "groundwork"

LOG_DIR_MODE = 0o755


class LogWriter(Protocol):
    """Destination for rendered log lines."""

    def write(self, message: str) -> int: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...


class StdoutWriter:
    """Writes to the current ``sys.stdout``; closing it is a no-op."""

    name = "stdout"

    def write(self, message: str) -> int:
        return sys.stdout.write(message)

    def flush(self) -> None:
        sys.stdout.flush()

    def close(self) -> None:
        return None


class StderrWriter:
    """Writes to the current ``sys.stderr``; closing it is a no-op."""

    name = "stderr"

    def write(self, message: str) -> int:
        return sys.stderr.write(message)

    def flush(self) -> None:
        sys.stderr.flush()

    def close(self) -> None:
        return None


class FileLogWriter:
    """
    Appends to a log file.

    Parent directories are created on open and existing content is never
    truncated. ``close()`` releases the descriptor and may be called more
    than once.
    """

    def __init__(self, path: Path, stream: IO[str]):
        self.path = path
        self._stream = stream

    @classmethod
    def open(cls, path: str) -> "FileLogWriter":
        normalized = Path(os.path.normpath(os.path.expanduser(path)))
        try:
            normalized.parent.mkdir(mode=LOG_DIR_MODE, parents=True, exist_ok=True)
        except OSError as exc:
            raise ResourceAcquisitionError(
                f"failed to create log directory {normalized.parent}: {exc}", cause=exc
            ) from exc
        try:
            stream = open(normalized, "a", encoding="utf-8")
        except OSError as exc:
            raise ResourceAcquisitionError(
                f"failed to open log file {normalized}: {exc}", cause=exc
            ) from exc
        return cls(normalized, stream)

    @property
    def name(self) -> str:
        return str(self.path)

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def write(self, message: str) -> int:
        return self._stream.write(message)

    def flush(self) -> None:
        self._stream.flush()

    def close(self) -> None:
        if not self._stream.closed:
            self._stream.close()


def create_log_writer(path: str) -> LogWriter:
    """
    Select a log writer for a configured log path.

    Args:
        path: ``"stdout"``, ``"stderr"`` or a file path

    Raises:
        ConfigurationError: If the path is empty
        ResourceAcquisitionError: If the file or its directory cannot be created
    """
    if path == "stdout":
        return StdoutWriter()
    if path == "stderr":
        return StderrWriter()
    if not path:
        raise ConfigurationError("log path cannot be empty", config_key="APP_LOG_PATH")
    return FileLogWriter.open(path)


def add_service_context(service_name: str, environment: str) -> Processor:
    """
    Create a processor that adds service context to all log events.

    Args:
        service_name: Name of the service
        environment: Deployment environment
    """

    def processor(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict.setdefault("service", service_name)
        if environment:
            event_dict.setdefault("environment", environment)
        return event_dict

    return processor


def add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add ISO8601 timestamp."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def format_exception(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Render an exception passed as ``error=`` as a type/message mapping."""
    error = event_dict.get("error")
    if isinstance(error, BaseException):
        event_dict["error"] = {"type": type(error).__name__, "message": str(error)}
    return event_dict


def build_processors(environment: str) -> List[Processor]:
    """Processor chain shared by the service logger and the stdlib bridge."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        add_timestamp,
        add_service_context(SERVICE_NAME, environment),
        format_exception,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(default=str),
    ]


class LoggerService:
    """
    Owns one log writer and the structured logger that renders into it.

    The logger is built with ``structlog.wrap_logger`` so that constructing a
    service never mutates global logging configuration.
    """

    def __init__(self, writer: LogWriter, level: int = logging.WARNING, environment: str = ""):
        self._writer = writer
        self._level = level
        self._environment = environment
        self._logger = structlog.wrap_logger(
            structlog.WriteLogger(file=writer),
            processors=build_processors(environment),
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
            cache_logger_on_first_use=False,
        )
        self._closed = False

    @classmethod
    def create(cls, config_service: Optional["ConfigService"]) -> "LoggerService":
        """
        Build the logger service from configuration.

        Raises:
            ConfigurationError: Missing config service or empty log path
            ResourceAcquisitionError: Log file could not be opened
        """
        if config_service is None:
            raise ConfigurationError("config service cannot be None")
        config = config_service.config
        writer = create_log_writer(config.log_path)
        return cls(writer, level=config.log_level, environment=config.app_env)

    @property
    def logger(self) -> FilteringBoundLogger:
        return self._logger

    @property
    def writer(self) -> LogWriter:
        return self._writer

    @property
    def level(self) -> int:
        return self._level

    @property
    def environment(self) -> str:
        return self._environment

    def get_logger(self, name: str, **initial_values: Any) -> FilteringBoundLogger:
        """Child logger carrying a ``logger`` name and extra bound values."""
        return self._logger.bind(logger=name, **initial_values)

    def close(self) -> None:
        """
        Release the writer. Standard streams are left open.

        The writer is closed even when the final flush fails; the flush
        error is raised afterwards.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._writer.flush()
        except ValueError:
            # already closed underneath us
            pass
        finally:
            self._writer.close()


class _JsonFormatter(logging.Formatter):
    """JSON formatter for stdlib logging records routed to a LoggerService writer."""

    def __init__(self, environment: str = ""):
        super().__init__()
        self._environment = environment

    def format(self, record: logging.LogRecord) -> str:
        log_record: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
            "service": SERVICE_NAME,
        }
        if self._environment:
            log_record["environment"] = self._environment

        if record.exc_info:
            log_record["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_record, default=str)


_installed_handler: Optional[logging.Handler] = None


def install_default_logger(logger_service: LoggerService) -> None:
    """
    Route process-global logging to a logger service's writer.

    Only the outermost entry points (CLI, HTTP server, migrations runner)
    call this. Library code always receives its logger explicitly.
    """
    global _installed_handler

    uninstall_default_logger()

    structlog.configure(
        processors=build_processors(logger_service.environment),
        wrapper_class=structlog.make_filtering_bound_logger(logger_service.level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=logger_service.writer),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(logger_service.writer)
    handler.setLevel(logger_service.level)
    handler.setFormatter(_JsonFormatter(logger_service.environment))

    root_logger = logging.getLogger()
    root_logger.setLevel(logger_service.level)
    root_logger.addHandler(handler)
    _installed_handler = handler

    # Set levels for noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(max(logger_service.level, logging.WARNING))
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def uninstall_default_logger() -> None:
    """Undo ``install_default_logger``; safe to call when nothing is installed."""
    global _installed_handler

    if _installed_handler is not None:
        logging.getLogger().removeHandler(_installed_handler)
        _installed_handler = None
    structlog.reset_defaults()
