"""Unit tests for ReconnectPolicy and TimeoutConfig."""

from __future__ import annotations

import pytest

from kframe_control.transport.retry_policy import ReconnectPolicy, TimeoutConfig

MAX_RETRIES = 3


def assert_close(actual: float, expected: float, *, tolerance: float = 1e-9) -> None:
    assert abs(actual - expected) <= tolerance


class TestTimeoutConfig:
    """Tests for derived timeouts."""

    def test_defaults(self):
        """Default durations: 10s handshake, 1s Packet 1 retry, 100ms suite follow-up."""
        config = TimeoutConfig()

        assert_close(config.handshake_timeout_seconds, 10.0)
        assert_close(config.packet1_retry_seconds, 1.0)
        assert_close(config.suite_followup_seconds, 0.1)

    def test_custom_base(self):
        """The handshake timeout is twice the base timeout."""
        assert_close(TimeoutConfig(base_timeout_ms=250).handshake_timeout_seconds, 0.5)

    @pytest.mark.parametrize(("interval_ms", "expected"), [(2000, 5.0), (1000, 2.5), (400, 1.0)])
    def test_heartbeat_timeout(self, interval_ms, expected):
        """The watchdog is 2.5 keepalive intervals."""
        assert_close(TimeoutConfig.heartbeat_timeout_seconds(interval_ms), expected)

    def test_repr(self):
        """repr shows the computed values."""
        assert "handshake=10.000s" in repr(TimeoutConfig())


class TestReconnectPolicy:
    """Tests for the retry budget."""

    def test_budget(self):
        """max_retries failures are allowed, the next one is not."""
        policy = ReconnectPolicy(max_retries=MAX_RETRIES)

        results = [policy.register_failure() for _ in range(MAX_RETRIES + 1)]

        assert results == [True, True, True, False]
        assert policy.retry_count == MAX_RETRIES

    def test_zero_retries(self):
        """With no retries the first failure is final."""
        assert ReconnectPolicy(max_retries=0).register_failure() is False

    def test_reset(self):
        """reset() restores the full budget."""
        policy = ReconnectPolicy(max_retries=1)
        _ = policy.register_failure()

        policy.reset()

        assert policy.retry_count == 0
        assert policy.register_failure() is True

    def test_delay_follows_keepalive(self):
        """The reconnect delay equals the keepalive interval."""
        policy = ReconnectPolicy(keepalive_interval_ms=2000)
        assert_close(policy.delay_seconds, 2.0)

        policy.keepalive_interval_ms = 500
        assert_close(policy.delay_seconds, 0.5)
