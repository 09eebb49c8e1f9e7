"""
Correlation ID tracking for K-Frame connection attempts.

Every connection attempt (first connect, each reconnect, each device-reset
restart) runs in its own asyncio task with a fresh correlation ID. Timer and
datagram callbacks scheduled from that task inherit the ID, so all log lines
of one attempt can be grouped together.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator
from contextlib import contextmanager

__all__ = [
    "correlation_context",
    "ensure_correlation_id",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "kframe_correlation_id",
    default=None,
)


def generate_correlation_id() -> str:
    """
    Generate a new correlation ID.

    Returns:
        UUID4 hex without dashes
    """
    return uuid.uuid4().hex


def get_correlation_id() -> str | None:
    """Current correlation ID, or None if not set."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID in the current context (None clears it)."""
    _correlation_id.set(correlation_id)


@contextmanager
def correlation_context(
    correlation_id: str | None = None,
    auto_generate: bool = True,
) -> Generator[str | None]:
    """
    Scope a correlation ID, restoring the previous one on exit.

    Args:
        correlation_id: Specific ID to use (None to auto-generate)
        auto_generate: Generate a new ID if correlation_id is None

    Yields:
        The correlation ID used in this scope

    Example:
        with correlation_context("TEST-123"):
            manager.connect()
    """
    previous_id = get_correlation_id()

    if correlation_id is None and auto_generate:
        correlation_id = generate_correlation_id()

    set_correlation_id(correlation_id)
    try:
        yield correlation_id
    finally:
        set_correlation_id(previous_id)


def ensure_correlation_id() -> str:
    """Return the current correlation ID, generating and setting one if missing."""
    current_id = get_correlation_id()
    if current_id is None:
        current_id = generate_correlation_id()
        set_correlation_id(current_id)
    return current_id
