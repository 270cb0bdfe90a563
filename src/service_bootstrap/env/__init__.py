"""
Environment Configuration
=========================

Typed environment variable reads with default or abort fallback.
"""

from service_bootstrap.env.parsing import format_duration, parse_duration, parse_int
from service_bootstrap.env.reader import (
    EnvReader,
    FallbackPolicy,
    parse_env_duration,
    parse_env_int,
    parse_env_string,
)

__all__ = [
    "EnvReader",
    "FallbackPolicy",
    "parse_env_duration",
    "parse_env_int",
    "parse_env_string",
    "parse_duration",
    "parse_int",
    "format_duration",
]
