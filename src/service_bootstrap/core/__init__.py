"""
Core Module
============

Framework-agnostic building blocks shared by every helper group.
"""

from service_bootstrap.core.exceptions import (
    ApplicationException,
    ConfigurationException,
    EnvParseError,
    DatabaseConnectionException,
    DatabaseTimeoutException,
)

__all__ = [
    "ApplicationException",
    "ConfigurationException",
    "EnvParseError",
    "DatabaseConnectionException",
    "DatabaseTimeoutException",
]
