"""
Exception hierarchy for the load generator

Only harness misconfiguration is raised. Responses from the application
under test (4xx, 5xx, timeouts) are recorded as metric samples instead.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


class LoadGenError(Exception):
    """
    Base exception for all load generator errors

    Provides:
    - Automatic timestamping
    - Structured context
    - Automatic logging

    Example:
        raise LoadGenError(
            message="Could not write results",
            operation="write_results",
            context={"path": "load-test-results.json"}
        )
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for result artifacts"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "operation": self.operation,
            "context": self.context,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(LoadGenError):
    """Environment configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            context={"config_key": config_key},
            **kwargs
        )


class ProfileError(LoadGenError):
    """
    A load profile is unknown or internally inconsistent

    Examples:
    - Requesting a profile name that is not registered
    - Branch weights that are negative or sum to zero
    - A stage duration that cannot be parsed
    """

    def __init__(
        self,
        message: str,
        profile: Optional[str] = None,
        **kwargs
    ):
        self.profile = profile
        super().__init__(
            message=message,
            context={"profile": profile},
            **kwargs
        )


# ==========================================
# Reporting Errors
# ==========================================

class ResultsWriteError(LoadGenError):
    """The JSON result artifact could not be written"""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        self.path = path
        super().__init__(
            message=message,
            operation="write_results",
            context={"path": path},
            **kwargs
        )
