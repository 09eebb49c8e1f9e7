"""Asyncio UDP socket pair with instrumentation.

The session uses two independent datagram endpoints: a *main* socket for both
handshakes, commands and heartbeats, and a *listener* socket that only takes
part in the device's port announcement and is closed once that completes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from kframe_control.const import KFRAME_BIND_HOST
from kframe_control.metrics import registry
from kframe_control.protocol.payloads import UdpPorts

logger = logging.getLogger(__name__)

MAIN_SOCKET = "main"
LISTENER_SOCKET = "listener"

DatagramHandler = Callable[[bytes, tuple[str, int]], None]
SocketErrorHandler = Callable[[str, Exception], None]


class _DatagramEndpoint(asyncio.DatagramProtocol):
    """Forwards datagrams and socket errors from one endpoint to its owner."""

    def __init__(self, name: str, on_datagram: DatagramHandler, on_error: SocketErrorHandler) -> None:
        self.name = name
        self._on_datagram = on_datagram
        self._on_error = on_error

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        registry.record_packet_recv(self.name)
        logger.debug(
            "[%s] Received %d bytes from %s:%d: %s",
            self.name,
            len(data),
            addr[0],
            addr[1],
            data.hex(),
            extra={"socket": self.name, "bytes": len(data), "remote_port": addr[1]},
        )
        self._on_datagram(data, addr)

    def error_received(self, exc: Exception) -> None:
        logger.error(
            "[%s] Socket error: %s",
            self.name,
            exc,
            extra={"socket": self.name, "error": str(exc), "error_type": type(exc).__name__},
        )
        self._on_error(self.name, exc)

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None:
            self._on_error(self.name, exc)


class UdpSocketPair:
    """Main + listener UDP endpoints bound to fixed local ports."""

    def __init__(
        self,
        host: str,
        ports: UdpPorts,
        on_main_datagram: DatagramHandler,
        on_listener_datagram: DatagramHandler,
        on_error: SocketErrorHandler,
        bind_host: str = KFRAME_BIND_HOST,
    ):
        """
        Initialize socket pair parameters.

        Args:
            host: Device address every datagram is sent to
            ports: Local and remote port set
            on_main_datagram: Called with (data, addr) for datagrams on the main socket
            on_listener_datagram: Called with (data, addr) for datagrams on the listener socket
            on_error: Called with (socket_name, exception) on socket-level errors
            bind_host: Local address both sockets bind to

        """
        self.host = host
        self.ports = ports
        self.bind_host = bind_host
        self._on_main_datagram = on_main_datagram
        self._on_listener_datagram = on_listener_datagram
        self._on_error = on_error
        self.main: asyncio.DatagramTransport | None = None
        self.listener: asyncio.DatagramTransport | None = None

    async def _bind(self, name: str, port: int, handler: DatagramHandler) -> asyncio.DatagramTransport:
        loop = asyncio.get_running_loop()
        transport, _ = await loop.create_datagram_endpoint(
            lambda: _DatagramEndpoint(name, handler, self._on_error),
            local_addr=(self.bind_host, port),
        )
        logger.debug(
            "%s socket bound to port %d",
            name.capitalize(),
            port,
            extra={"socket": name, "port": port},
        )
        return transport

    async def open(self) -> bool:
        """
        Bind both sockets.

        Returns:
            True if both sockets are bound, False otherwise (nothing left open)
        """
        try:
            self.main = await self._bind(MAIN_SOCKET, self.ports.local_main, self._on_main_datagram)
            self.listener = await self._bind(LISTENER_SOCKET, self.ports.local_listener, self._on_listener_datagram)
        except OSError as e:
            logger.exception(
                "Failed to bind UDP sockets",
                extra={
                    "main_port": self.ports.local_main,
                    "listener_port": self.ports.local_listener,
                    "error": str(e),
                },
            )
            self.close()
            return False
        else:
            logger.info(
                "UDP sockets open",
                extra={"host": self.host, "main_port": self.main_port, "listener_port": self.listener_port},
            )
            return True

    async def reopen_listener(self) -> bool:
        """Bind the listener socket again after it was closed (device restart)."""
        if self.listener is not None:
            return True
        try:
            self.listener = await self._bind(LISTENER_SOCKET, self.ports.local_listener, self._on_listener_datagram)
        except OSError as e:
            logger.exception(
                "Failed to rebind listener socket",
                extra={"listener_port": self.ports.local_listener, "error": str(e)},
            )
            return False
        else:
            return True

    def _send(self, name: str, transport: asyncio.DatagramTransport | None, data: bytes, port: int) -> bool:
        if transport is None or transport.is_closing():
            logger.error(
                "Cannot send on %s socket: not open",
                name,
                extra={"socket": name, "port": port},
            )
            registry.record_packet_sent(name, "not_open")
            return False
        try:
            transport.sendto(data, (self.host, port))
        except (OSError, RuntimeError, ValueError) as e:
            logger.exception(
                "Send on %s socket to %s:%d failed",
                name,
                self.host,
                port,
                extra={"socket": name, "host": self.host, "port": port, "error": str(e)},
            )
            registry.record_packet_sent(name, "error")
            return False
        registry.record_packet_sent(name, "success")
        logger.debug(
            "[%s] Sent %d bytes to %s:%d: %s",
            name,
            len(data),
            self.host,
            port,
            data.hex(),
            extra={"socket": name, "bytes": len(data), "host": self.host, "port": port},
        )
        return True

    def send_main(self, data: bytes, port: int) -> bool:
        """Send ``data`` from the main socket to ``host:port``."""
        return self._send(MAIN_SOCKET, self.main, data, port)

    def send_listener(self, data: bytes, port: int) -> bool:
        """Send ``data`` from the listener socket to ``host:port``."""
        return self._send(LISTENER_SOCKET, self.listener, data, port)

    @staticmethod
    def _close_transport(name: str, transport: asyncio.DatagramTransport) -> None:
        try:
            transport.close()
        except (OSError, RuntimeError) as e:
            # Already-closed sockets are not an error condition
            logger.warning(
                "Error closing %s socket: %s",
                name,
                e,
                extra={"socket": name, "error": str(e), "error_type": type(e).__name__},
            )

    def close_listener(self) -> None:
        """Close the listener socket (idempotent)."""
        if self.listener is not None:
            self._close_transport(LISTENER_SOCKET, self.listener)
            self.listener = None
            logger.debug("Listener socket closed")

    def close(self) -> None:
        """Close both sockets (idempotent)."""
        if self.main is not None:
            self._close_transport(MAIN_SOCKET, self.main)
            self.main = None
        self.close_listener()

    @staticmethod
    def _bound_port(transport: asyncio.DatagramTransport | None) -> int | None:
        if transport is None:
            return None
        sockname = transport.get_extra_info("sockname")
        return sockname[1] if sockname else None

    @property
    def main_port(self) -> int | None:
        """Actual local port of the main socket (None when closed)."""
        return self._bound_port(self.main)

    @property
    def listener_port(self) -> int | None:
        """Actual local port of the listener socket (None when closed)."""
        return self._bound_port(self.listener)

    @property
    def is_open(self) -> bool:
        """True while the main socket is open."""
        return self.main is not None

    def __repr__(self) -> str:
        """String representation."""
        status = "open" if self.is_open else "closed"
        listener = "open" if self.listener is not None else "closed"
        return f"UdpSocketPair({self.host}, main={status}, listener={listener})"
