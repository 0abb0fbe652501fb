"""
Groundwork - Configuration Validation

Validates a fully built ``Config`` before any resource is opened:
- Required values and allowed environments
- IPv4 bind address and numeric port
- Range checks for header size and pool limits
- Existence checks for directories

Every problem is collected so a single ``ConfigurationError`` can report
all of them at once.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from core.errors import ConfigurationError

if TYPE_CHECKING:
    from config import Config

ALLOWED_ENVIRONMENTS = ("prod", "dev", "test")


class ValidationLevel(Enum):
    """Validation result severity levels."""

    WARNING = "warning"
    ERROR = "error"


@dataclass
class ValidationIssue:
    """Single validation issue."""

    level: ValidationLevel
    message: str
    field: Optional[str] = None
    actual: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level.value,
            "message": self.message,
            "field": self.field,
            "actual": self.actual,
        }


@dataclass
class ValidationResult:
    """Result of configuration validation."""

    valid: bool = True
    issues: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    def add_error(self, message: str, **kwargs: Any) -> None:
        self.issues.append(ValidationIssue(ValidationLevel.ERROR, message, **kwargs))
        self.valid = False

    def add_warning(self, message: str, **kwargs: Any) -> None:
        self.warnings.append(ValidationIssue(ValidationLevel.WARNING, message, **kwargs))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "issues": [i.to_dict() for i in self.issues],
            "warnings": [w.to_dict() for w in self.warnings],
        }

    def raise_if_invalid(self) -> None:
        """Raise ConfigurationError listing every issue if validation failed."""
        if not self.valid:
            messages = [issue.message for issue in self.issues]
            raise ConfigurationError(
                f"configuration validation failed: {'; '.join(messages)}",
                config_key=self.issues[0].field,
            )


def _require(result: ValidationResult, name: str, value: Any) -> bool:
    if value in (None, ""):
        result.add_error(f"{name} is required", field=name)
        return False
    return True


def _check_range(result: ValidationResult, name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        result.add_error(
            f"{name} must be between {low} and {high}",
            field=name,
            actual=str(value),
        )


def _check_dir(result: ValidationResult, name: str, value: str) -> None:
    if _require(result, name, value) and not Path(value).is_dir():
        result.add_error(f"{name} must be an existing directory", field=name, actual=value)


def validate_app_config(config: "Config") -> ValidationResult:
    """
    Check a built configuration.

    Args:
        config: The configuration to validate

    Returns:
        ValidationResult with every problem found
    """
    result = ValidationResult()

    _check_dir(result, "APP_BASE_DIR", config.app_base_dir)
    if _require(result, "APP_ENV", config.app_env) and config.app_env not in ALLOWED_ENVIRONMENTS:
        result.add_error(
            f"APP_ENV must be one of {', '.join(ALLOWED_ENVIRONMENTS)}",
            field="APP_ENV",
            actual=config.app_env,
        )
    _require(result, "APP_LOG_PATH", config.log_path)

    http = config.http_server
    if _require(result, "HTTP_BIND_ADDRESS", http.bind_address):
        try:
            ipaddress.IPv4Address(http.bind_address)
        except ValueError:
            result.add_error(
                "HTTP_BIND_ADDRESS must be an IPv4 address",
                field="HTTP_BIND_ADDRESS",
                actual=http.bind_address,
            )
    if _require(result, "HTTP_BIND_PORT", http.bind_port) and not http.bind_port.isdigit():
        result.add_error("HTTP_BIND_PORT must be numeric", field="HTTP_BIND_PORT", actual=http.bind_port)
    _check_range(result, "HTTP_MAX_HEADER_BYTES", http.max_header_bytes, 0, 64000)
    if http.request_timeout <= 0:
        result.add_error("HTTP_REQUEST_TIMEOUT must be positive", field="HTTP_REQUEST_TIMEOUT")

    db = config.db
    _require(result, "DB_DSN", db.dsn)
    _check_range(result, "DB_MAX_IDLE_CONNECTIONS", db.max_idle_connections, 0, 99)
    _check_range(result, "DB_MAX_OPEN_CONNECTIONS", db.max_open_connections, 0, 99)
    if db.connection_max_idle_time < 0 or db.connection_max_lifetime < 0:
        result.add_error("DB connection durations cannot be negative", field="DB_CONNECTION_MAX_LIFETIME")
    _check_dir(result, "DB_MIGRATIONS_DIR_PATH", db.migrations_dir_path)

    if (
        db.max_open_connections
        and db.max_idle_connections > db.max_open_connections
    ):
        result.add_warning(
            "DB_MAX_IDLE_CONNECTIONS exceeds DB_MAX_OPEN_CONNECTIONS and will be capped",
            field="DB_MAX_IDLE_CONNECTIONS",
        )

    return result
