"""
Groundwork - Unified Error Handling

Error hierarchy shared by the configuration, logging, database, container
and migrations layers.

Features:
- Hierarchical exception classes with cause preservation
- Error codes for structured logging and API payloads
- Stage-tagged container errors so callers can tell which service failed
- Aggregate teardown errors that keep every individual failure
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence


class GroundworkError(Exception):
    """
    Base exception for all Groundwork-specific errors.

    Provides:
    - A human readable message (also the ``str()`` of the error)
    - Chained exception support via ``cause``
    - Optional remediation suggestions
    """

    error_code: str = "GROUNDWORK_ERROR"

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.suggestions = suggestions or []
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logs and API responses."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "suggestions": self.suggestions,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        return self.message


class ConfigurationError(GroundworkError):
    """Missing, malformed or invalid configuration."""

    error_code = "CONFIG_ERROR"

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.config_key = config_key


class ResourceAcquisitionError(GroundworkError):
    """A log file, directory or database handle could not be opened."""

    error_code = "RESOURCE_ERROR"


class LivenessError(GroundworkError):
    """A resource was opened but does not respond."""

    error_code = "LIVENESS_ERROR"


class ContainerError(GroundworkError):
    """Service container construction failed at a given stage."""

    error_code = "CONTAINER_ERROR"

    def __init__(self, message: str, stage: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.stage = stage

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["stage"] = self.stage
        return result


class TeardownError(GroundworkError):
    """One or more services failed to release their resources."""

    error_code = "TEARDOWN_ERROR"

    def __init__(self, message: str, errors: Sequence[BaseException], **kwargs: Any):
        self.errors: List[BaseException] = list(errors)
        details = "; ".join(str(error) for error in self.errors)
        super().__init__(f"{message}: {details}" if details else message, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["errors"] = [str(error) for error in self.errors]
        return result


class MigrationError(GroundworkError):
    """A schema migration command failed."""

    error_code = "MIGRATION_ERROR"


class MigrationLockedError(MigrationError):
    """Another migrations process holds the lock."""

    error_code = "MIGRATION_LOCKED"
