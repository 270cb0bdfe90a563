"""
Shared API Middleware
======================

Starlette middleware attaching a trace ID to each request.
"""

import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from service_bootstrap.config import TRACE_ID_HEADER
from service_bootstrap.shared.infrastructure.logging import get_logger
from service_bootstrap.tracing import TRACE_ID, new_trace_id

logger = get_logger(__name__)


def _parse_incoming(value: Optional[str]) -> Optional[uuid.UUID]:
    if not value:
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


class TraceIDMiddleware(BaseHTTPMiddleware):
    """
    Attaches a trace ID to every request.

    A valid UUID in the `X-Trace-ID` header is reused, anything else is
    replaced with a fresh one. The ID is visible through `get_trace_id()`
    and `request.state.trace_id` while the request is processed, and is
    echoed back in the response header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = _parse_incoming(request.headers.get(TRACE_ID_HEADER)) or new_trace_id()
        request.state.trace_id = trace_id

        token = TRACE_ID.set(trace_id)
        try:
            response = await call_next(request)
        finally:
            TRACE_ID.reset(token)

        response.headers[TRACE_ID_HEADER] = str(trace_id)
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs all requests and responses.

    Must be added before `TraceIDMiddleware` so it runs inside it.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = str(getattr(request.state, "trace_id", "unknown"))
        start_time = time.perf_counter()

        logger.info(
            "Request started",
            extra={
                "trace_id": trace_id,
                "method": request.method,
                "path": request.url.path,
                "client": request.client.host if request.client else None
            }
        )

        try:
            response = await call_next(request)
        except Exception as e:
            response_time = time.perf_counter() - start_time
            logger.error(
                "Request failed",
                extra={
                    "trace_id": trace_id,
                    "method": request.method,
                    "path": request.url.path,
                    "error": str(e),
                    "response_time_ms": int(response_time * 1000)
                }
            )
            raise

        response_time = time.perf_counter() - start_time
        logger.info(
            "Request completed",
            extra={
                "trace_id": trace_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "response_time_ms": int(response_time * 1000)
            }
        )
        return response
