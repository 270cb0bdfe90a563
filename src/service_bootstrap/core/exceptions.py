"""
Core Exceptions
================

Exceptions raised by the bootstrap helpers.

Environment parsing errors never reach callers of the readers; they are
resolved by the reader's fallback policy. Database bootstrap errors are
propagated so the application can decide whether to abort startup.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all service-bootstrap errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class EnvParseError(ConfigurationException, ValueError):
    """Raised when an environment value is missing, empty or malformed."""

    def __init__(self, message: str, value: Optional[str] = None):
        self.value = value
        super().__init__(message, {"value": value} if value is not None else None)


class DatabaseConnectionException(ApplicationException):
    """Exception when the connection pool cannot be built or validated."""

    def __init__(self, message: str, stage: str, details: Optional[dict] = None):
        self.stage = stage
        super().__init__(message, {"stage": stage, **(details or {})})


class DatabaseTimeoutException(DatabaseConnectionException):
    """Exception when the liveness check exceeds its deadline."""

    def __init__(self, timeout: float, details: Optional[dict] = None):
        self.timeout = timeout
        super().__init__(
            f"Database ping did not complete within {timeout}s",
            "ping",
            {"timeout": timeout, **(details or {})},
        )
