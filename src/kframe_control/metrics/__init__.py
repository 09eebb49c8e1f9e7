"""Metrics module."""

from .registry import (
    record_command,
    record_connection_state,
    record_handshake,
    record_heartbeat,
    record_reconnection,
    start_metrics_server,
)

__all__ = [
    "record_command",
    "record_connection_state",
    "record_handshake",
    "record_heartbeat",
    "record_reconnection",
    "start_metrics_server",
]
