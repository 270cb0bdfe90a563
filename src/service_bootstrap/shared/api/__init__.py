"""
Shared API
==========

Middleware for FastAPI / Starlette applications.
"""

from service_bootstrap.shared.api.middleware import LoggingMiddleware, TraceIDMiddleware

__all__ = ["TraceIDMiddleware", "LoggingMiddleware"]
