"""Keepalive emission and heartbeat watchdog for a connected session.

A heartbeat is sent every keepalive interval. The watchdog is armed once,
after the first successful send, and is re-armed only by heartbeat
responses, so it fires after 2.5 intervals of device silence rather than
after a single lost reply.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from kframe_control.metrics import registry
from kframe_control.transport.retry_policy import TimeoutConfig
from kframe_control.transport.timers import SessionTimers, TimerName

logger = logging.getLogger(__name__)


class HeartbeatSupervisor:
    """Drives the KEEPALIVE and HEARTBEAT_TIMEOUT timers of a session."""

    def __init__(
        self,
        timers: SessionTimers,
        send_heartbeat: Callable[[], bool],
        on_failure: Callable[[str], None],
        interval_ms: Callable[[], float],
        is_active: Callable[[], bool],
    ) -> None:
        """Initialize the supervisor.

        Args:
            timers: Shared session timers
            send_heartbeat: Sends one heartbeat, returns False on send error
            on_failure: Called with a reason on send error or watchdog expiry
            interval_ms: Current keepalive interval (read at every arm)
            is_active: False once the session left the connected stage

        """
        self.timers = timers
        self._send_heartbeat = send_heartbeat
        self._on_failure = on_failure
        self._interval_ms = interval_ms
        self._is_active = is_active
        self.initial_heartbeat_sent: bool = False

    def start(self) -> None:
        """Begin periodic heartbeats (first one after one interval)."""
        self.stop()
        self.initial_heartbeat_sent = False
        self._arm_keepalive()

    def stop(self) -> None:
        """Cancel both heartbeat timers."""
        self.timers.cancel(TimerName.KEEPALIVE)
        self.timers.cancel(TimerName.HEARTBEAT_TIMEOUT)

    def reset(self) -> None:
        """Stop and forget that a heartbeat was ever sent."""
        self.stop()
        self.initial_heartbeat_sent = False

    def _arm_keepalive(self) -> None:
        _ = self.timers.arm(TimerName.KEEPALIVE, self._interval_ms() / 1000.0, self._on_keepalive)

    def _arm_watchdog(self) -> None:
        _ = self.timers.arm(
            TimerName.HEARTBEAT_TIMEOUT,
            TimeoutConfig.heartbeat_timeout_seconds(self._interval_ms()),
            self._on_watchdog_expired,
        )

    def _on_keepalive(self) -> None:
        if not self._is_active():
            self.stop()
            return

        if not self._send_heartbeat():
            logger.warning("Heartbeat send failed")
            registry.record_heartbeat("send_failed")
            self._on_failure("heartbeat_send_failed")
            return

        registry.record_heartbeat("sent")
        if not self.initial_heartbeat_sent:
            self._arm_watchdog()
            self.initial_heartbeat_sent = True
        self._arm_keepalive()

    def response_received(self) -> None:
        """Heartbeat response from the device: restart the watchdog."""
        registry.record_heartbeat("response")
        logger.debug("Heartbeat response received")
        self._arm_watchdog()

    def _on_watchdog_expired(self) -> None:
        logger.warning(
            "Heartbeat timeout",
            extra={"timeout_seconds": TimeoutConfig.heartbeat_timeout_seconds(self._interval_ms())},
        )
        registry.record_heartbeat("timeout")
        self._on_failure("heartbeat_timeout")
