"""
Structured Logging
==================

JSON-structured logging with trace ID tracking.

Provides:
- Structured JSON logs (parseable by log aggregators)
- Trace ID injection from the current context
- Contextual and no-op loggers
- Performance timing utilities

Usage:
    from service_bootstrap.shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Pool ready", extra={"pool_size": 5})
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Union

from pythonjsonlogger import jsonlogger

from service_bootstrap.config import Settings, get_settings
from service_bootstrap.tracing import get_trace_id


# Anything accepted as a diagnostic sink
LoggerLike = Union[logging.Logger, logging.LoggerAdapter]

NULL_LOGGER_NAME = "service_bootstrap.null"

_SENSITIVE_KEYS = ("password", "token", "api_key")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    Custom JSON formatter with additional fields.

    Adds:
    - timestamp in ISO format
    - trace_id when one is attached to the current context
    - Environment info
    """

    def __init__(self, *args: Any, environment: str = "unknown", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.environment = environment

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        # Explicit extra wins over the context value
        if "trace_id" not in log_record:
            trace_id = get_trace_id()
            if trace_id is not None:
                log_record["trace_id"] = str(trace_id)

        log_record["environment"] = getattr(record, "environment", self.environment)

        for key, value in list(log_record.items()):
            if isinstance(value, str) and any(s in key.lower() for s in _SENSITIVE_KEYS):
                log_record[key] = "***REDACTED***"


class ContextLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges per-call `extra` with the bound fields."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


class TraceIdFilter(logging.Filter):
    """Copies the current trace ID onto records for plain-text formats."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "trace_id"):
            trace_id = get_trace_id()
            record.trace_id = str(trace_id) if trace_id is not None else "-"
        return True


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
    json_format: bool = True,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        environment: Environment name for log context
        json_format: Emit JSON lines instead of plain text
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        formatter: logging.Formatter = CustomJsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
            environment=environment,
        )
    else:
        handler.addFilter(TraceIdFilter())
        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s [%(trace_id)s]: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Silence noisy loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)


def configure_logging(settings: Settings | None = None) -> None:
    """Apply `setup_logging` using LOG_LEVEL, ENVIRONMENT and LOG_JSON."""
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.environment, settings.log_json)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        logging.Logger: Configured logger instance
    """
    return logging.getLogger(name)


def get_context_logger(name: str, trace_id: Any = None) -> LoggerLike:
    """
    Get a logger bound to a trace ID.

    Args:
        name: Logger name
        trace_id: Request trace ID

    Returns:
        Logger with trace_id in extra
    """
    logger = get_logger(name)
    if trace_id:
        return ContextLoggerAdapter(logger, {"trace_id": str(trace_id)})
    return logger


def get_null_logger() -> logging.Logger:
    """Return a logger that discards every record."""
    logger = logging.getLogger(NULL_LOGGER_NAME)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger


@contextmanager
def log_latency(logger: LoggerLike, operation: str, **extra_context: Any):
    """
    Context manager for measuring and logging operation latency.

    Only a block that exits normally is logged; exceptions propagate
    without a "completed" record.

    Usage:
        with log_latency(logger, "database_ping", driver="asyncpg"):
            await conn.execute(text("SELECT 1"))

    Args:
        logger: Logger instance
        operation: Operation name for logging
        **extra_context: Additional context to include in log
    """
    start = time.perf_counter()
    yield
    latency_ms = (time.perf_counter() - start) * 1000
    logger.debug(
        f"{operation} completed",
        extra={
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            **extra_context,
        },
    )
