"""Unit tests for SessionTimers."""

from __future__ import annotations

import asyncio

import pytest

from kframe_control.transport.timers import SessionTimers, TimerName


@pytest.mark.asyncio
async def test_timer_fires_and_is_forgotten() -> None:
    """A fired timer runs its callback and is no longer armed."""
    timers = SessionTimers()
    fired = asyncio.Event()

    _ = timers.arm(TimerName.KEEPALIVE, 0.01, fired.set)
    assert timers.is_armed(TimerName.KEEPALIVE)

    await asyncio.wait_for(fired.wait(), timeout=1.0)

    assert not timers.is_armed(TimerName.KEEPALIVE)


@pytest.mark.asyncio
async def test_rearm_replaces_handle() -> None:
    """Arming again cancels the pending handle."""
    timers = SessionTimers()
    calls: list[str] = []

    first = timers.arm(TimerName.HEARTBEAT_TIMEOUT, 10.0, lambda: calls.append("first"))
    second = timers.arm(TimerName.HEARTBEAT_TIMEOUT, 10.0, lambda: calls.append("second"))

    assert first.cancelled()
    assert not second.cancelled()
    assert timers.handle(TimerName.HEARTBEAT_TIMEOUT) is second
    timers.cancel_all()


@pytest.mark.asyncio
async def test_cancel_all() -> None:
    """cancel_all() cancels every pending timer and is idempotent."""
    timers = SessionTimers()
    handles = [timers.arm(name, 10.0, lambda: None) for name in TimerName]

    timers.cancel_all()
    timers.cancel_all()

    assert timers.armed == set()
    assert all(handle.cancelled() for handle in handles)


@pytest.mark.asyncio
async def test_cancelled_timer_does_not_fire() -> None:
    """A cancelled timer never runs its callback."""
    timers = SessionTimers()
    calls: list[int] = []

    _ = timers.arm(TimerName.RECONNECT_DELAY, 0.01, lambda: calls.append(1))
    timers.cancel(TimerName.RECONNECT_DELAY)
    await asyncio.sleep(0.05)

    assert calls == []


def test_cancel_unarmed_is_noop() -> None:
    """Cancelling a timer that is not armed does nothing."""
    timers = SessionTimers()

    timers.cancel(TimerName.SUITE_FOLLOWUP)

    assert timers.handle(TimerName.SUITE_FOLLOWUP) is None
