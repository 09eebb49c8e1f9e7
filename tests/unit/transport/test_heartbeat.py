"""Unit tests for HeartbeatSupervisor timer logic."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from kframe_control.transport.heartbeat import HeartbeatSupervisor
from kframe_control.transport.timers import SessionTimers, TimerName

INTERVAL_MS = 2000


class HeartbeatHarness:
    """Supervisor wired to mocks, with manual timer firing."""

    def __init__(self) -> None:
        self.timers = SessionTimers()
        self.send = MagicMock(return_value=True)
        self.on_failure = MagicMock()
        self.active = True
        self.supervisor = HeartbeatSupervisor(
            self.timers,
            send_heartbeat=self.send,
            on_failure=self.on_failure,
            interval_ms=lambda: INTERVAL_MS,
            is_active=lambda: self.active,
        )

    def fire(self, name: TimerName) -> None:
        handle = self.timers.handle(name)
        assert handle is not None, f"{name} not armed"
        callback, args = handle._callback, handle._args  # noqa: SLF001
        handle.cancel()
        callback(*args)

    def delay(self, name: TimerName) -> float:
        handle = self.timers.handle(name)
        assert handle is not None
        return handle.when() - asyncio.get_running_loop().time()


@pytest.fixture
def harness() -> HeartbeatHarness:
    return HeartbeatHarness()


@pytest.mark.asyncio
async def test_start_arms_keepalive_only(harness: HeartbeatHarness) -> None:
    """Nothing is sent at start; the first heartbeat waits one interval."""
    harness.supervisor.start()

    assert harness.timers.armed == {TimerName.KEEPALIVE}
    harness.send.assert_not_called()
    assert 1.9 < harness.delay(TimerName.KEEPALIVE) <= 2.0
    harness.timers.cancel_all()


@pytest.mark.asyncio
async def test_first_send_arms_watchdog(harness: HeartbeatHarness) -> None:
    """The first successful send arms the watchdog at 2.5 intervals."""
    harness.supervisor.start()

    harness.fire(TimerName.KEEPALIVE)

    harness.send.assert_called_once()
    assert harness.timers.armed == {TimerName.KEEPALIVE, TimerName.HEARTBEAT_TIMEOUT}
    assert 4.9 < harness.delay(TimerName.HEARTBEAT_TIMEOUT) <= 5.0
    harness.timers.cancel_all()


@pytest.mark.asyncio
async def test_later_sends_do_not_rearm_watchdog(harness: HeartbeatHarness) -> None:
    """Only responses move the watchdog."""
    harness.supervisor.start()
    harness.fire(TimerName.KEEPALIVE)
    watchdog = harness.timers.handle(TimerName.HEARTBEAT_TIMEOUT)

    harness.fire(TimerName.KEEPALIVE)

    assert harness.timers.handle(TimerName.HEARTBEAT_TIMEOUT) is watchdog
    harness.timers.cancel_all()


@pytest.mark.asyncio
async def test_response_rearms_watchdog(harness: HeartbeatHarness) -> None:
    """A response replaces the watchdog handle."""
    harness.supervisor.start()
    harness.fire(TimerName.KEEPALIVE)
    watchdog = harness.timers.handle(TimerName.HEARTBEAT_TIMEOUT)

    harness.supervisor.response_received()

    assert watchdog.cancelled()
    assert harness.timers.is_armed(TimerName.HEARTBEAT_TIMEOUT)
    harness.timers.cancel_all()


@pytest.mark.asyncio
async def test_watchdog_expiry_reports_failure(harness: HeartbeatHarness) -> None:
    """Watchdog expiry calls on_failure with heartbeat_timeout."""
    harness.supervisor.start()
    harness.fire(TimerName.KEEPALIVE)

    harness.fire(TimerName.HEARTBEAT_TIMEOUT)

    harness.on_failure.assert_called_once_with("heartbeat_timeout")
    harness.timers.cancel_all()


@pytest.mark.asyncio
async def test_send_failure_reports_failure(harness: HeartbeatHarness) -> None:
    """A failed send stops the cycle and reports the failure."""
    harness.send.return_value = False
    harness.supervisor.start()

    harness.fire(TimerName.KEEPALIVE)

    harness.on_failure.assert_called_once_with("heartbeat_send_failed")
    assert not harness.timers.is_armed(TimerName.KEEPALIVE)
    assert harness.supervisor.initial_heartbeat_sent is False


@pytest.mark.asyncio
async def test_inactive_session_stops(harness: HeartbeatHarness) -> None:
    """A keepalive tick after the session left CONNECTED sends nothing."""
    harness.supervisor.start()
    harness.active = False

    harness.fire(TimerName.KEEPALIVE)

    harness.send.assert_not_called()
    assert harness.timers.armed == set()


@pytest.mark.asyncio
async def test_reset(harness: HeartbeatHarness) -> None:
    """reset() cancels both timers and clears the first-send flag."""
    harness.supervisor.start()
    harness.fire(TimerName.KEEPALIVE)

    harness.supervisor.reset()

    assert harness.timers.armed == set()
    assert harness.supervisor.initial_heartbeat_sent is False
