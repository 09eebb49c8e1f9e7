"""
Shared fixtures for kframe-control tests.

Provides the fake socket factory, mock host callbacks and a session config
pointing at a test device.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from kframe_control.structs import SessionConfig
from kframe_control.transport.types import ConnectionCallbacks
from tests.helpers.fakes import DEVICE_HOST, FakeSocketFactory


@pytest.fixture
def socket_factory() -> FakeSocketFactory:
    """Fresh fake socket factory."""
    return FakeSocketFactory()


@pytest.fixture
def callbacks() -> MagicMock:
    """Mock host callbacks."""
    return MagicMock(spec=ConnectionCallbacks)


@pytest.fixture
def session_config() -> SessionConfig:
    """Session config pointing at a test device."""
    return SessionConfig(host=DEVICE_HOST, keepalive_interval_ms=2000, max_retries=5, suite="suite1a")
