"""Fixtures for integration tests."""

from collections.abc import AsyncGenerator, Awaitable, Callable

import pytest

from tests.helpers.mock_kframe_device import DeviceMode, MockKFrameDevice


@pytest.fixture
async def mock_device_factory() -> AsyncGenerator[Callable[..., Awaitable[MockKFrameDevice]]]:
    """Start mock devices; every started device is stopped on teardown."""
    devices: list[MockKFrameDevice] = []

    async def _start(listener_port: Callable[[], int | None], mode: DeviceMode = DeviceMode.SUCCESS) -> MockKFrameDevice:
        device = MockKFrameDevice(listener_port=listener_port, mode=mode)
        await device.start()
        devices.append(device)
        return device

    yield _start

    for device in devices:
        device.stop()
