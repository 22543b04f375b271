"""Correlation ID handling so one relay request can be followed across log lines.

HTTP requests take the ID from ``X-Correlation-ID`` (or get a fresh one).
Background work that outlives any request (the WhatsApp session supervisor,
the keep-alive loop) binds its own prefixed ID so its lines can be grouped
the same way.
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

# Survives awaits inside the request task (probe, render, send)
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"


def generate_correlation_id(prefix: str | None = None) -> str:
    if prefix:
        return f"{prefix}-{uuid.uuid4().hex[:12]}"
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    """Return the correlation ID bound to the running task, or ""."""
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    correlation_id_var.reset(token)


@contextmanager
def correlation_scope(cid: str | None = None, *, prefix: str | None = None) -> Iterator[str]:
    """Bind ``cid`` (or a freshly generated ID) for the duration of the block."""
    cid = cid or generate_correlation_id(prefix)
    token = set_correlation_id(cid)
    try:
        yield cid
    finally:
        reset_correlation_id(token)
