"""Timer handles owned by one K-Frame session.

Every timer the engine runs lives here so a single ``cancel_all()`` can stop
them unconditionally from both the disconnect and the failure paths.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)


class TimerName(Enum):
    """Independently owned session timers."""

    PACKET1_RETRY = "packet1_retry"
    HANDSHAKE_TIMEOUT = "handshake_timeout"
    KEEPALIVE = "keepalive"
    HEARTBEAT_TIMEOUT = "heartbeat_timeout"
    RECONNECT_DELAY = "reconnect_delay"
    SUITE_FOLLOWUP = "suite_followup"


class SessionTimers:
    """Named ``loop.call_later`` handles with arm/cancel bookkeeping.

    Arming a timer that is already armed replaces it; a handle is forgotten
    as soon as it fires so ``is_armed()`` reflects only pending timers.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop: asyncio.AbstractEventLoop | None = loop
        self._handles: dict[TimerName, asyncio.TimerHandle] = {}

    def arm(self, name: TimerName, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        """(Re)arm ``name`` to run ``callback`` after ``delay`` seconds."""
        self.cancel(name)
        loop = self._loop or asyncio.get_running_loop()

        def _fire() -> None:
            _ = self._handles.pop(name, None)
            callback()

        handle = loop.call_later(delay, _fire)
        self._handles[name] = handle
        logger.debug("Armed %s timer (%.3fs)", name.value, delay, extra={"timer": name.value, "delay": delay})
        return handle

    def cancel(self, name: TimerName) -> None:
        """Cancel ``name`` if it is pending."""
        handle = self._handles.pop(name, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        """Cancel every pending timer (idempotent)."""
        for name in list(self._handles):
            self.cancel(name)

    def is_armed(self, name: TimerName) -> bool:
        """True if ``name`` is pending."""
        return name in self._handles

    def handle(self, name: TimerName) -> asyncio.TimerHandle | None:
        """Pending handle for ``name`` (None if not armed)."""
        return self._handles.get(name)

    @property
    def armed(self) -> set[TimerName]:
        """Names of all pending timers."""
        return set(self._handles)
