"""Prometheus metrics registry for the K-Frame UDP session."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    start_http_server,
)

# Metric definitions
kframe_packet_sent_total: Final = Counter(  # type: ignore[assignment]
    "kframe_packet_sent_total",
    "Total datagrams sent",
    ["socket", "outcome"],
)

kframe_packet_recv_total: Final = Counter(  # type: ignore[assignment]
    "kframe_packet_recv_total",
    "Total datagrams received",
    ["socket"],
)

kframe_unknown_packet_total: Final = Counter(  # type: ignore[assignment]
    "kframe_unknown_packet_total",
    "Total datagrams dropped as unrecognized for the current stage",
    ["socket", "stage"],
)

kframe_handshake_total: Final = Counter(  # type: ignore[assignment]
    "kframe_handshake_total",
    "Total handshake outcomes",
    ["outcome"],
)

kframe_reconnection_total: Final = Counter(  # type: ignore[assignment]
    "kframe_reconnection_total",
    "Total reconnection attempts",
    ["reason"],
)

kframe_heartbeat_total: Final = Counter(  # type: ignore[assignment]
    "kframe_heartbeat_total",
    "Total heartbeat events",
    ["outcome"],
)

kframe_connection_state: Final = Gauge(  # type: ignore[assignment]
    "kframe_connection_state",
    "Current connection state",
    ["state"],
)

kframe_command_total: Final = Counter(  # type: ignore[assignment]
    "kframe_command_total",
    "Total command results",
    ["command", "outcome"],
)

kframe_macro_ack_total: Final = Counter(  # type: ignore[assignment]
    "kframe_macro_ack_total",
    "Total macro acknowledgements received",
    ["outcome"],
)

_CONNECTION_STATES = ("disconnected", "connecting", "handshaking", "connected", "reconnecting")

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9410) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_packet_sent(socket: str, outcome: str) -> None:
    """Record a sent datagram."""
    kframe_packet_sent_total.labels(socket=socket, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_packet_recv(socket: str) -> None:
    """Record a received datagram."""
    kframe_packet_recv_total.labels(socket=socket).inc()  # type: ignore[no-untyped-call]


def record_unknown_packet(socket: str, stage: str) -> None:
    """Record a datagram ignored because it matched nothing expected."""
    kframe_unknown_packet_total.labels(socket=socket, stage=stage).inc()  # type: ignore[no-untyped-call]


def record_handshake(outcome: str) -> None:
    """Record a handshake outcome."""
    kframe_handshake_total.labels(outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_reconnection(reason: str) -> None:
    """Record a reconnection attempt."""
    kframe_reconnection_total.labels(reason=reason).inc()  # type: ignore[no-untyped-call]


def record_heartbeat(outcome: str) -> None:
    """Record a heartbeat event (sent, response, timeout, send_failed)."""
    kframe_heartbeat_total.labels(outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_connection_state(state: str) -> None:
    """Record connection state change."""
    # Set gauge to 1 for current state, 0 for all others
    for s in _CONNECTION_STATES:
        value = 1 if s == state else 0
        kframe_connection_state.labels(state=s).set(value)  # type: ignore[no-untyped-call]


def record_command(command: str, outcome: str) -> None:
    """Record a command result."""
    kframe_command_total.labels(command=command, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_macro_ack(outcome: str) -> None:
    """Record a macro ack (matched or unmatched)."""
    kframe_macro_ack_total.labels(outcome=outcome).inc()  # type: ignore[no-untyped-call]
