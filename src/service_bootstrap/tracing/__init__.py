"""
Trace Context
=============

Mints per-request trace identifiers and carries them in a context variable.

Usage:
    from service_bootstrap.tracing import attach_trace_id, get_trace_id

    ctx = attach_trace_id()
    ctx.run(handle_request)                       # sync
    asyncio.create_task(handle(), context=ctx)    # async

Inside the handler, `get_trace_id()` returns the identifier and every log
record emitted through `CustomJsonFormatter` carries it as `trace_id`.
"""

import contextvars
import uuid
from typing import Optional


# Well-known key under which the trace identifier is stored
TRACE_ID: contextvars.ContextVar[uuid.UUID] = contextvars.ContextVar("trace_id")


def new_trace_id() -> uuid.UUID:
    """Return a fresh random (version 4) UUID."""
    return uuid.uuid4()


def attach_trace_id(ctx: Optional[contextvars.Context] = None) -> contextvars.Context:
    """
    Derive a context carrying a newly minted trace identifier.

    The given context (or the caller's current context when omitted) is
    copied; only the copy sees the new value.

    Args:
        ctx: Context to derive from

    Returns:
        contextvars.Context: Derived context with `TRACE_ID` set
    """
    base = ctx if ctx is not None else contextvars.copy_context()
    derived = base.copy()
    derived.run(TRACE_ID.set, new_trace_id())
    return derived


def get_trace_id(ctx: Optional[contextvars.Context] = None) -> Optional[uuid.UUID]:
    """Return the trace identifier of `ctx` (or the current context), if any."""
    if ctx is not None:
        return ctx.get(TRACE_ID)
    return TRACE_ID.get(None)


__all__ = ["TRACE_ID", "new_trace_id", "attach_trace_id", "get_trace_id"]
