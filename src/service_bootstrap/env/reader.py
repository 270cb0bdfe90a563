"""
Environment Reader
==================

Typed reads of environment variables with a configurable fallback policy.

Usage:
    from service_bootstrap.env import EnvReader, FallbackPolicy

    env = EnvReader()                                   # warn and use default
    timeout = env.duration("HTTP_TIMEOUT", timedelta(seconds=30))

    strict = EnvReader(FallbackPolicy.ABORT)            # exit the process
    service_name = strict.string("SERVICE_NAME", "")
"""

import logging
import os
from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

from service_bootstrap.core.exceptions import EnvParseError
from service_bootstrap.env.parsing import format_duration, parse_duration, parse_int
from service_bootstrap.shared.infrastructure.logging import LoggerLike, get_logger

_default_logger = get_logger(__name__)

T = TypeVar("T")


class FallbackPolicy(str, Enum):
    """What a reader does when a variable is absent, empty or malformed."""
    DEFAULT = "default"  # warn and return the caller's default
    ABORT = "abort"      # log critical and terminate the process


def _terminate(code: int = 1) -> None:
    """Flush log handlers and exit the whole process immediately."""
    logging.shutdown()
    os._exit(code)


class EnvReader:
    """
    Reads typed values from `os.environ`.

    Parse failures never reach the caller: under `FallbackPolicy.DEFAULT`
    the default is returned after one warning, under `FallbackPolicy.ABORT`
    the process exits with status 1 after one critical record.

    Args:
        policy: Fallback policy applied to every read
        logger: Diagnostic sink; `get_null_logger()` silences the reader
    """

    def __init__(
        self,
        policy: FallbackPolicy = FallbackPolicy.DEFAULT,
        logger: Optional[LoggerLike] = None,
    ):
        self.policy = FallbackPolicy(policy)
        self.logger = logger if logger is not None else _default_logger

    def duration(self, name: str, default: timedelta) -> timedelta:
        """Read `name` as a duration such as "5s" or "1h30m"."""
        return self._read(name, default, parse_duration, format_duration)

    def string(self, name: str, default: str) -> str:
        """Read `name` as a non-empty string."""
        return self._read(name, default, _require_non_empty, str)

    def _read(
        self,
        name: str,
        default: T,
        parse: Callable[[str], T],
        render: Callable[[Any], str],
    ) -> T:
        raw = os.environ.get(name)
        try:
            if raw is None:
                raise EnvParseError(f"environment variable {name} is not set")
            value = parse(raw)
        except EnvParseError as e:
            return self._fallback(name, default, render, e)

        self.logger.debug(
            "Read environment variable",
            extra={"variable": name, "value": render(value)},
        )
        return value

    def _fallback(
        self,
        name: str,
        default: T,
        render: Callable[[Any], str],
        error: EnvParseError,
    ) -> T:
        if self.policy is FallbackPolicy.ABORT:
            self.logger.critical(
                f"Could not read {name} from environment, exiting",
                extra={"variable": name, "error": str(error)},
            )
            _terminate(1)
            # Unreachable unless _terminate is replaced
            raise SystemExit(1)

        self.logger.warning(
            f"Could not read {name} from environment, using default {render(default)}",
            extra={"variable": name, "default": render(default), "error": str(error)},
        )
        return default

    # Kept last: below this line `int` in the class body names the method,
    # not the builtin
    def int(self, name: str, default: int) -> int:
        """Read `name` as a base-10 integer."""
        return self._read(name, default, parse_int, str)


def _require_non_empty(raw: str) -> str:
    if raw == "":
        raise EnvParseError("environment variable is empty", raw)
    return raw


# ========== Free-function convention ==========

def parse_env_duration(
    name: str,
    default: timedelta,
    logger: LoggerLike,
    policy: FallbackPolicy = FallbackPolicy.DEFAULT,
) -> timedelta:
    """Read a duration with an explicit logger; see `EnvReader.duration`."""
    return EnvReader(policy, logger).duration(name, default)


def parse_env_int(
    name: str,
    default: int,
    logger: LoggerLike,
    policy: FallbackPolicy = FallbackPolicy.DEFAULT,
) -> int:
    """Read an integer with an explicit logger; see `EnvReader.int`."""
    return EnvReader(policy, logger).int(name, default)


def parse_env_string(
    name: str,
    default: str,
    logger: LoggerLike,
    policy: FallbackPolicy = FallbackPolicy.DEFAULT,
) -> str:
    """Read a non-empty string with an explicit logger; see `EnvReader.string`."""
    return EnvReader(policy, logger).string(name, default)
