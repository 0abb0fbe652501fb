"""
Groundwork - Service Container

Builds the process-wide services in dependency order and owns their
lifecycle.

Features:
- Ordered, fail-fast construction: config, logger, database, helpers
- Rollback of already opened services, newest first, on any failure
- Best-effort teardown that attempts every release and reports all errors
- Explicit accessors instead of a global service locator

Usage:
    async with await Container.create() as container:
        container.logger.info("ready")
        await container.db.ping()
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, List, Mapping, Optional, Sequence

from structlog.typing import FilteringBoundLogger

from api.responses import ResponseBuilder
from config import Config, ConfigService
from core.errors import ContainerError, TeardownError
from db.database import PING_TIMEOUT_SECONDS, DatabaseService
from observability.logging import LoggerService

logger = logging.getLogger("groundwork.di.container")


async def _close_instance(instance: Any) -> None:
    """Call ``close`` on a service whether it is sync or async."""
    result = instance.close()
    if inspect.isawaitable(result):
        await result


async def _rollback(acquired: Sequence[Any]) -> None:
    """Close services newest first; secondary errors never replace the primary one."""
    for instance in reversed(acquired):
        try:
            await _close_instance(instance)
        except Exception as error:
            logger.warning(
                "Ignoring error while rolling back %s: %s", type(instance).__name__, error
            )


class Container:
    """
    Holds the constructed services.

    Instances come from ``Container.create()``, which either returns a
    container whose services are all usable or raises after releasing
    everything it opened.
    """

    def __init__(
        self,
        config_service: ConfigService,
        logger_service: LoggerService,
        db: Optional[DatabaseService] = None,
        response_builder: Optional[ResponseBuilder] = None,
    ):
        self._config_service = config_service
        self._logger_service = logger_service
        self._db = db
        self._response_builder = response_builder or ResponseBuilder(logger_service)
        self._closed = False

    @classmethod
    async def create(
        cls,
        db_overrides: Optional[Mapping[str, Any]] = None,
        ping_timeout: float = PING_TIMEOUT_SECONDS,
    ) -> "Container":
        """
        Construct every service in order.

        Args:
            db_overrides: ``DatabaseConfig`` fields to replace for this container
            ping_timeout: Deadline in seconds for the database liveness check

        Raises:
            ContainerError: Carrying the failing ``stage`` and the cause
        """
        try:
            config_service = ConfigService.create()
        except Exception as error:
            raise ContainerError(
                f"failed to create config service: {error}", stage="config", cause=error
            ) from error

        try:
            logger_service = LoggerService.create(config_service)
        except Exception as error:
            raise ContainerError(
                f"failed to create logger service: {error}", stage="logger", cause=error
            ) from error

        acquired: List[Any] = [logger_service]
        try:
            db = await DatabaseService.create(
                config_service, overrides=db_overrides, ping_timeout=ping_timeout
            )
        except BaseException as error:
            await _rollback(acquired)
            if not isinstance(error, Exception):
                raise
            raise ContainerError(
                f"failed to create database service: {error}", stage="database", cause=error
            ) from error
        acquired.append(db)

        try:
            response_builder = ResponseBuilder(logger_service)
        except BaseException as error:
            await _rollback(acquired)
            if not isinstance(error, Exception):
                raise
            raise ContainerError(
                f"failed to create response builder: {error}", stage="response_builder", cause=error
            ) from error

        container = cls(config_service, logger_service, db, response_builder)
        logger_service.get_logger("groundwork.di.container").debug(
            "container ready", app_env=config_service.config.app_env
        )
        return container

    @property
    def config_service(self) -> ConfigService:
        return self._config_service

    @property
    def config(self) -> Config:
        return self._config_service.config

    @property
    def logger_service(self) -> LoggerService:
        return self._logger_service

    @property
    def logger(self) -> FilteringBoundLogger:
        return self._logger_service.logger

    @property
    def db(self) -> Optional[DatabaseService]:
        return self._db

    @property
    def response_builder(self) -> ResponseBuilder:
        return self._response_builder

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        """
        Release the database pool, then the log writer.

        Every release is attempted even if an earlier one fails. A second
        call does nothing.

        Raises:
            TeardownError: Listing every release that failed
        """
        if self._closed:
            return
        self._closed = True

        errors: List[Exception] = []
        if self._db is not None:
            try:
                await self._db.close()
            except Exception as error:
                errors.append(ContainerError(
                    f"failed to close database service: {error}", stage="database", cause=error
                ))
        if self._logger_service is not None:
            try:
                self._logger_service.close()
            except Exception as error:
                errors.append(ContainerError(
                    f"failed to close logger service: {error}", stage="logger", cause=error
                ))

        if errors:
            raise TeardownError("errors during container shutdown", errors)

    async def __aenter__(self) -> "Container":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
