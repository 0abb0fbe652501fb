"""
Groundwork - Core Module

Foundational pieces with no dependency on other Groundwork packages:
- Unified error hierarchy
- Configuration validation

Usage:
    from core import ConfigurationError, ContainerError, TeardownError
"""

from core.config_validator import (
    ValidationIssue,
    ValidationLevel,
    ValidationResult,
    validate_app_config,
)
from core.errors import (
    ConfigurationError,
    ContainerError,
    GroundworkError,
    LivenessError,
    MigrationError,
    MigrationLockedError,
    ResourceAcquisitionError,
    TeardownError,
)

__all__ = [
    # Errors
    "GroundworkError",
    "ConfigurationError",
    "ResourceAcquisitionError",
    "LivenessError",
    "ContainerError",
    "TeardownError",
    "MigrationError",
    "MigrationLockedError",
    # Validation
    "ValidationIssue",
    "ValidationLevel",
    "ValidationResult",
    "validate_app_config",
]
