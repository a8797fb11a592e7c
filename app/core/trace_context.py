"""Trace ID context management using contextvars (coroutine-safe).

Every HTTP request and every dashboard submission runs under its own
trace_id, so analysis and persona-image logs of one submission can be
correlated even though the image fetches run as separate tasks.
"""
from __future__ import annotations

import contextvars
import time
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

_trace_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "trace_id", default=None
)


def get_trace_id() -> Optional[str]:
    """Return the trace_id of the current context, or None."""
    return _trace_id_var.get()


def set_trace_id(trace_id: Optional[str]) -> None:
    """Set the trace_id of the current context (None clears it)."""
    _trace_id_var.set(trace_id or None)


def clear_trace_id() -> None:
    """Clear the trace_id of the current context."""
    _trace_id_var.set(None)


def generate_trace_id() -> str:
    """
    Generate a new trace_id.

    Returns:
        First 16 hex chars of a uuid4 followed by the last 6 digits of the
        current epoch seconds.
    """
    uuid_part = uuid.uuid4().hex[:16]
    timestamp_part = str(int(time.time()))[-6:]
    return f"{uuid_part}{timestamp_part}"


@contextmanager
def trace_scope(trace_id: Optional[str] = None) -> Iterator[str]:
    """
    Run a block under a trace_id and restore the previous one afterwards.

    Tasks created inside the block copy the context, so they inherit the
    trace_id for their whole lifetime.
    """
    trace_id = trace_id or generate_trace_id()
    token = _trace_id_var.set(trace_id)
    try:
        yield trace_id
    finally:
        _trace_id_var.reset(token)
