"""
Service Bootstrap
=================

Startup and per-request helpers for backend services:

- Environment reads: typed values with default or abort fallback
- Database: build and validate an async connection pool
- Tracing: attach a trace ID to the request context
"""

from service_bootstrap.env import EnvReader, FallbackPolicy
from service_bootstrap.infrastructure.database import close_database, connect_database
from service_bootstrap.tracing import TRACE_ID, attach_trace_id, get_trace_id

__version__ = "1.0.0"

__all__ = [
    "EnvReader",
    "FallbackPolicy",
    "connect_database",
    "close_database",
    "TRACE_ID",
    "attach_trace_id",
    "get_trace_id",
]
