"""
Tests for core/errors.py - Error hierarchy.
"""
import pytest

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


@pytest.mark.parametrize("error_cls", [
    ConfigurationError,
    ResourceAcquisitionError,
    LivenessError,
    MigrationError,
    MigrationLockedError,
])
def test_hierarchy(error_cls):
    assert issubclass(error_cls, GroundworkError)


class TestGroundworkError:
    """Tests for the base error."""

    def test_message_and_cause(self):
        cause = OSError("disk full")
        error = GroundworkError("could not write", cause=cause, suggestions=["free space"])

        assert str(error) == "could not write"
        data = error.to_dict()
        assert data["error_code"] == "GROUNDWORK_ERROR"
        assert data["cause"] == "disk full"
        assert data["suggestions"] == ["free space"]

    def test_configuration_key(self):
        error = ConfigurationError("DB_DSN is required", config_key="DB_DSN")

        assert error.config_key == "DB_DSN"
        assert error.to_dict()["error_code"] == "CONFIG_ERROR"


class TestContainerError:
    """Tests for ContainerError."""

    def test_stage(self):
        cause = LivenessError("failed to ping database: refused")
        error = ContainerError("failed to create database service: refused", stage="database", cause=cause)

        assert error.stage == "database"
        assert error.cause is cause
        assert error.to_dict()["stage"] == "database"


class TestTeardownError:
    """Tests for TeardownError."""

    def test_joins_every_error(self):
        errors = [RuntimeError("pool busy"), OSError("bad descriptor")]

        error = TeardownError("errors during container shutdown", errors)

        assert error.errors == errors
        assert str(error) == "errors during container shutdown: pool busy; bad descriptor"
        assert error.to_dict()["errors"] == ["pool busy", "bad descriptor"]

    def test_without_errors(self):
        assert str(TeardownError("nothing failed", [])) == "nothing failed"
