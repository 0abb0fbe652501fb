"""
Groundwork - Observability Package

Structured JSON logging owned by the service container.

Usage:
    from observability import LoggerService, create_log_writer
"""
from observability.logging import (
    FileLogWriter,
    LoggerService,
    LogWriter,
    StderrWriter,
    StdoutWriter,
    create_log_writer,
    install_default_logger,
    uninstall_default_logger,
)

__all__ = [
    "LogWriter",
    "StdoutWriter",
    "StderrWriter",
    "FileLogWriter",
    "create_log_writer",
    "LoggerService",
    "install_default_logger",
    "uninstall_default_logger",
]
