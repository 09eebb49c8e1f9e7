"""
In-memory stand-ins for the UDP socket pair.

FakeSocketPair records every datagram the engine sends and lets tests inject
device datagrams on either socket without touching the network.
"""

from __future__ import annotations

import asyncio
import struct

from kframe_control.protocol.payloads import UdpPorts
from kframe_control.transport.socket_abstraction import (
    LISTENER_SOCKET,
    MAIN_SOCKET,
    DatagramHandler,
    SocketErrorHandler,
)

DEVICE_HOST = "10.0.0.50"
ANNOUNCED_PORT = 6200


def make_announcement(port: int, length: int = 20) -> bytes:
    """Port announcement with ``port`` (u16 BE) at offset 18."""
    data = bytearray(length)
    struct.pack_into(">H", data, 18, port)
    return bytes(data)


class FakeSocketPair:
    """Stand-in for UdpSocketPair that records sends and never touches the network."""

    def __init__(
        self,
        host: str,
        ports: UdpPorts,
        on_main_datagram: DatagramHandler,
        on_listener_datagram: DatagramHandler,
        on_error: SocketErrorHandler,
    ) -> None:
        self.host = host
        self.ports = ports
        self.on_main_datagram = on_main_datagram
        self.on_listener_datagram = on_listener_datagram
        self.on_error = on_error
        self.sent: list[tuple[str, bytes, int]] = []
        self.open_result = True
        self.fail_sends = False
        self.main_open = False
        self.listener_open = False
        self.open_calls = 0
        self.reopen_calls = 0
        self.close_calls = 0

    async def open(self) -> bool:
        self.open_calls += 1
        await asyncio.sleep(0)
        if self.open_result:
            self.main_open = True
            self.listener_open = True
        return self.open_result

    async def reopen_listener(self) -> bool:
        self.reopen_calls += 1
        self.listener_open = True
        return True

    def send_main(self, data: bytes, port: int) -> bool:
        if self.fail_sends or not self.main_open:
            return False
        self.sent.append((MAIN_SOCKET, data, port))
        return True

    def send_listener(self, data: bytes, port: int) -> bool:
        if self.fail_sends or not self.listener_open:
            return False
        self.sent.append((LISTENER_SOCKET, data, port))
        return True

    def close_listener(self) -> None:
        self.listener_open = False

    def close(self) -> None:
        self.close_calls += 1
        self.main_open = False
        self.listener_open = False

    @property
    def is_open(self) -> bool:
        return self.main_open

    # Device side

    def device_main(self, data: bytes, port: int) -> None:
        """Deliver ``data`` to the main socket as if sent from device ``port``."""
        self.on_main_datagram(data, (self.host, port))

    def device_listener(self, data: bytes, port: int | None = None) -> None:
        """Deliver ``data`` to the listener socket (from the announce port by default)."""
        self.on_listener_datagram(data, (self.host, port or self.ports.remote_announce))

    def sent_payloads(self, socket: str = MAIN_SOCKET) -> list[bytes]:
        return [data for name, data, _ in self.sent if name == socket]

    def count(self, data: bytes, socket: str = MAIN_SOCKET) -> int:
        return self.sent_payloads(socket).count(data)


class FakeSocketFactory:
    """Socket factory that keeps every FakeSocketPair it builds."""

    def __init__(self) -> None:
        self.created: list[FakeSocketPair] = []
        self.open_result = True

    def __call__(
        self,
        host: str,
        ports: UdpPorts,
        on_main_datagram: DatagramHandler,
        on_listener_datagram: DatagramHandler,
        on_error: SocketErrorHandler,
    ) -> FakeSocketPair:
        pair = FakeSocketPair(host, ports, on_main_datagram, on_listener_datagram, on_error)
        pair.open_result = self.open_result
        self.created.append(pair)
        return pair

    @property
    def latest(self) -> FakeSocketPair:
        return self.created[-1]


