"""Reconnect policy and timeout configuration for the K-Frame session.

Reconnection uses a fixed delay equal to the keepalive interval and a bounded
retry budget; there is no exponential growth and no jitter.
"""

from __future__ import annotations

DEFAULT_BASE_TIMEOUT_MS = 5000.0
HANDSHAKE_TIMEOUT_FACTOR = 2.0
HEARTBEAT_TIMEOUT_FACTOR = 2.5
PACKET1_RETRY_SECONDS = 1.0
SUITE_FOLLOWUP_SECONDS = 0.1


class TimeoutConfig:
    """Timer durations derived from the base timeout and keepalive interval.

    Handshake timeout spans socket open to Phase 2 completion. The heartbeat
    watchdog is a multiple of the (mutable) keepalive interval, so it is
    computed on demand rather than stored.
    """

    def __init__(
        self,
        base_timeout_ms: float = DEFAULT_BASE_TIMEOUT_MS,
        packet1_retry_seconds: float = PACKET1_RETRY_SECONDS,
        suite_followup_seconds: float = SUITE_FOLLOWUP_SECONDS,
    ):
        """Initialize timeout configuration.

        Args:
            base_timeout_ms: Base protocol timeout (milliseconds)
            packet1_retry_seconds: Resend interval for Packet 1 while awaiting Packet 2
            suite_followup_seconds: Delay between the two packets of a suite switch

        """
        self.base_timeout_ms = base_timeout_ms
        self.handshake_timeout_seconds = (base_timeout_ms * HANDSHAKE_TIMEOUT_FACTOR) / 1000.0
        self.packet1_retry_seconds = packet1_retry_seconds
        self.suite_followup_seconds = suite_followup_seconds

    @staticmethod
    def heartbeat_timeout_seconds(keepalive_interval_ms: float) -> float:
        """Watchdog duration: 2.5x the keepalive interval."""
        return (keepalive_interval_ms * HEARTBEAT_TIMEOUT_FACTOR) / 1000.0

    def __repr__(self) -> str:
        """String representation showing all calculated timeouts."""
        return (
            f"TimeoutConfig(base={self.base_timeout_ms}ms, "
            f"handshake={self.handshake_timeout_seconds:.3f}s, "
            f"packet1_retry={self.packet1_retry_seconds:.3f}s, "
            f"suite_followup={self.suite_followup_seconds:.3f}s)"
        )


class ReconnectPolicy:
    """Bounded retry budget with a fixed delay.

    ``register_failure()`` is called once per failed attempt; it consumes one
    retry from the budget and reports whether another attempt is allowed.
    A successful handshake resets the budget.
    """

    def __init__(self, max_retries: int = 5, keepalive_interval_ms: float = 2000.0):
        """Initialize reconnect policy.

        Args:
            max_retries: Reconnection attempts allowed after the first attempt fails
            keepalive_interval_ms: Fixed delay before each reconnection attempt

        """
        self.max_retries = max_retries
        self.keepalive_interval_ms = keepalive_interval_ms
        self.retry_count = 0

    def register_failure(self) -> bool:
        """Consume one retry; return True if a reconnection attempt should follow."""
        if self.retry_count < self.max_retries:
            self.retry_count += 1
            return True
        return False

    def reset(self) -> None:
        """Restore the full retry budget."""
        self.retry_count = 0

    @property
    def delay_seconds(self) -> float:
        """Delay before the next reconnection attempt."""
        return self.keepalive_interval_ms / 1000.0

    def __repr__(self) -> str:
        """String representation of reconnect policy."""
        return (
            f"ReconnectPolicy(retry={self.retry_count}/{self.max_retries}, "
            f"delay={self.delay_seconds:.3f}s)"
        )
