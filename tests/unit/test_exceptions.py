"""Unit tests for custom exception hierarchy"""
import logging
from datetime import datetime

from loadgen.exceptions import (
    ConfigurationError,
    LoadGenError,
    ProfileError,
    ResultsWriteError,
)


class TestLoadGenError:
    """Test base exception class"""

    def test_basic_exception(self):
        """Test basic exception creation"""
        error = LoadGenError("Test error")
        assert error.message == "Test error"
        assert str(error) == "Test error"
        assert error.context == {}
        assert isinstance(error.timestamp, datetime)

    def test_exception_with_context(self):
        error = LoadGenError(
            message="Could not write results",
            operation="write_results",
            context={"path": "load-test-results.json"},
        )
        assert error.operation == "write_results"
        assert error.context["path"] == "load-test-results.json"

    def test_exception_with_cause(self):
        """Test exception wrapping another exception"""
        original_error = OSError("disk full")
        error = LoadGenError(message="Write failed", cause=original_error)
        assert error.cause is original_error

    def test_to_dict(self):
        """Test exception serialization"""
        error_dict = LoadGenError("Test error", operation="run").to_dict()
        assert error_dict["error"] == "LoadGenError"
        assert error_dict["message"] == "Test error"
        assert error_dict["operation"] == "run"
        assert "timestamp" in error_dict

    def test_logged_on_creation(self, caplog):
        with caplog.at_level(logging.ERROR, logger="loadgen.exceptions"):
            LoadGenError("Something broke", operation="setup")
        assert "LoadGenError: Something broke" in caplog.text


class TestSubclasses:
    """Test specific error types"""

    def test_configuration_error(self):
        error = ConfigurationError("BASE_URL must be an http(s) URL", config_key="BASE_URL")
        assert isinstance(error, LoadGenError)
        assert error.config_key == "BASE_URL"
        assert error.context == {"config_key": "BASE_URL"}

    def test_profile_error(self):
        error = ProfileError("Unknown profile", profile="hammer")
        assert isinstance(error, LoadGenError)
        assert error.profile == "hammer"
        assert error.to_dict()["context"] == {"profile": "hammer"}

    def test_results_write_error(self):
        cause = PermissionError("denied")
        error = ResultsWriteError("Could not write", path="/ro/out.json", cause=cause)
        assert error.path == "/ro/out.json"
        assert error.operation == "write_results"
        assert error.cause is cause
