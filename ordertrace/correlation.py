"""
Request-scoped correlation id storage

The middleware stores one CorrelationContext per request in a ContextVar.
Each asyncio task and each thread sees its own copy, so concurrent requests
never observe each other's id.
"""

import re
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Iterator, Optional

CORRELATION_ID_HEADER = "X-Correlation-ID"
MAX_CORRELATION_ID_LENGTH = 128

_ALLOWED_ID = re.compile(r"[\x21-\x7e]+")
_TRACEPARENT = re.compile(r"[0-9a-f]{2}-([0-9a-f]{32})-[0-9a-f]{16}-[0-9a-f]{2}")


@dataclass(frozen=True)
class CorrelationContext:
    """Identifiers for the request currently being handled"""

    correlation_id: Optional[str] = None
    trace_id: Optional[str] = None


_current_context: ContextVar[Optional[CorrelationContext]] = ContextVar(
    "correlation_context", default=None
)


def generate_correlation_id() -> str:
    """Generate a new correlation ID"""
    return str(uuid.uuid4()).upper()


def generate_trace_id() -> str:
    return uuid.uuid4().hex


def is_valid_correlation_id(value: Optional[str]) -> bool:
    """Accept printable ASCII without whitespace, up to 128 characters"""
    if not value:
        return False
    return len(value) <= MAX_CORRELATION_ID_LENGTH and bool(_ALLOWED_ID.fullmatch(value))


def trace_id_from_traceparent(header: Optional[str]) -> Optional[str]:
    """Extract the trace-id field of a W3C traceparent header"""
    if not header:
        return None
    match = _TRACEPARENT.fullmatch(header.strip().lower())
    if match is None or match.group(1) == "0" * 32:
        return None
    return match.group(1)


def current_context() -> Optional[CorrelationContext]:
    return _current_context.get()


@contextmanager
def correlation_scope(context: CorrelationContext) -> Iterator[CorrelationContext]:
    """
    Make `context` the active correlation context for the enclosed block

    The previous value is restored on exit, even when the block raises.
    """
    token = _current_context.set(context)
    try:
        yield context
    finally:
        _current_context.reset(token)


def get_correlation_id(context: Optional[CorrelationContext] = None) -> Optional[str]:
    """
    Resolve the correlation id for a log record

    Args:
        context: Explicit context; the active request context is used when omitted

    Returns:
        The stored correlation id, else the request trace id, else None
    """
    if context is None:
        context = _current_context.get()
    if context is None:
        return None
    if context.correlation_id:
        return context.correlation_id
    return context.trace_id
