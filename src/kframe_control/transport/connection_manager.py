"""K-Frame session engine: lifecycle, handshake, keepalive and commands.

This module implements the ConnectionManager class which owns the UDP socket
pair, drives the two-phase handshake through the transition table in
``handshake.py``, supervises the keepalive, recovers from failures with a
bounded fixed-delay reconnect budget and issues macro, AUX and suite commands.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from pydantic import ValidationError

from kframe_control.correlation import generate_correlation_id, set_correlation_id
from kframe_control.metrics import registry
from kframe_control.protocol.codec import KFrameProtocol
from kframe_control.protocol.exceptions import CommandValidationError, PacketDecodeError
from kframe_control.protocol.macro_ids import MacroIdAllocator
from kframe_control.protocol.payloads import (
    ANNOUNCEMENT_MIN_LENGTH,
    HEARTBEAT,
    HEARTBEAT_RESPONSE,
    PACKET_1,
    PACKET_3,
    PACKET_5,
    PACKET_7,
    PACKET_8,
    PACKET_10,
    PACKET_12,
    PACKET_14,
    SuiteCommand,
    UdpPorts,
)
from kframe_control.structs import SessionConfig
from kframe_control.transport.exceptions import KFrameConnectionError
from kframe_control.transport.handshake import HandshakeAction, HandshakeStage, HandshakeStateMachine
from kframe_control.transport.heartbeat import HeartbeatSupervisor
from kframe_control.transport.retry_policy import ReconnectPolicy, TimeoutConfig
from kframe_control.transport.socket_abstraction import (
    LISTENER_SOCKET,
    MAIN_SOCKET,
    DatagramHandler,
    SocketErrorHandler,
    UdpSocketPair,
)
from kframe_control.transport.timers import SessionTimers, TimerName
from kframe_control.transport.types import CommandResult, CommandType, ConnectionCallbacks, ConnectionState

logger = logging.getLogger(__name__)

NOT_CONNECTED = "Not connected"
SEND_FAILED = "Send failed"

SocketFactory = Callable[[str, UdpPorts, DatagramHandler, DatagramHandler, SocketErrorHandler], UdpSocketPair]


class ConnectionManager:
    """Owns one K-Frame control session.

    **Execution model**: everything runs on the event loop thread. Datagram
    callbacks, timer callbacks and public calls never interleave, so no locks
    are needed. Socket binding is the only awaited step; it runs in a task
    created per connection attempt, which also scopes the attempt's
    correlation ID.

    **States**: ``state`` is the coarse externally observable state;
    ``handshake.stage`` is the fine-grained handshake progress. Commands
    require both to be CONNECTED.

    **Failure handling**: handshake timeout, heartbeat timeout, socket errors
    and send errors all funnel into ``_handle_connection_failure()``, which
    tears down every timer and socket and then either schedules a reconnect
    after the keepalive interval or, once the retry budget is spent, gives up
    in DISCONNECTED.
    """

    def __init__(
        self,
        callbacks: ConnectionCallbacks | None = None,
        config: SessionConfig | None = None,
        ports: UdpPorts | None = None,
        timeout_config: TimeoutConfig | None = None,
        socket_factory: SocketFactory | None = None,
    ) -> None:
        """Initialize the engine (no I/O until ``connect()``).

        Args:
            callbacks: Host notifications (state changes, command results, errors)
            config: Initial session settings (defaults from environment)
            ports: Local/remote port set (defaults to the fixed K-Frame ports)
            timeout_config: Handshake/retry/follow-up durations
            socket_factory: Builds the UDP socket pair (tests inject fakes)

        """
        config = config or SessionConfig()
        self.callbacks: ConnectionCallbacks | None = callbacks
        self.ports: UdpPorts = ports or UdpPorts()
        self.timeout_config: TimeoutConfig = timeout_config or TimeoutConfig()
        self._socket_factory: SocketFactory = socket_factory or UdpSocketPair

        self.host: str = config.host
        self.keepalive_interval_ms: int = config.keepalive_interval_ms
        self.current_suite: str = config.suite
        self.reconnect_policy: ReconnectPolicy = ReconnectPolicy(config.max_retries, config.keepalive_interval_ms)

        self.state: ConnectionState = ConnectionState.DISCONNECTED
        self.handshake: HandshakeStateMachine = HandshakeStateMachine(self.ports)
        self.timers: SessionTimers = SessionTimers()
        self.macro_ids: MacroIdAllocator = MacroIdAllocator()
        self.heartbeat: HeartbeatSupervisor = HeartbeatSupervisor(
            self.timers,
            send_heartbeat=self._send_heartbeat,
            on_failure=self._handle_connection_failure,
            interval_ms=lambda: self.keepalive_interval_ms,
            is_active=self.is_connected,
        )
        self.sockets: UdpSocketPair | None = None
        self.connection_attempts: int = 0

        self._open_task: asyncio.Task[None] | None = None
        self._closing: bool = False

        self._actions: dict[HandshakeAction, Callable[[], None]] = {
            HandshakeAction.SEND_PACKET_3: self._send_packet3,
            HandshakeAction.SEND_PACKET_5: self._send_packet5,
            HandshakeAction.PHASE1_COMPLETE: self._on_phase1_complete,
            HandshakeAction.SEND_PACKET_14: self._send_packet14,
            HandshakeAction.SEND_PACKET_16: self._send_packet16,
            HandshakeAction.COMPLETE: self._complete_handshake,
        }

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def max_retries(self) -> int:
        return self.reconnect_policy.max_retries

    @property
    def retry_count(self) -> int:
        return self.reconnect_policy.retry_count

    @property
    def announced_target_port(self) -> int:
        return self.handshake.announced_port

    @property
    def dynamic_comm_port(self) -> int:
        return self.handshake.dynamic_port

    def is_connected(self) -> bool:
        """True only when both the coarse state and the handshake stage are CONNECTED."""
        return self.state == ConnectionState.CONNECTED and self.handshake.is_connected

    # ------------------------------------------------------------------
    # Configuration and lifecycle
    # ------------------------------------------------------------------

    def update_config(
        self,
        host: str,
        keepalive_interval_ms: int,
        max_retries: int,
        suite: str | None = None,
    ) -> bool:
        """Apply new session settings.

        A changed host or suite forces a full reconnect when a session is
        active. Keepalive and retry changes apply to the next timer arm and
        the next failure respectively.

        Returns:
            False if the settings were rejected (nothing applied)

        """
        try:
            config = SessionConfig(
                host=host,
                keepalive_interval_ms=keepalive_interval_ms,
                max_retries=max_retries,
                suite=suite or self.current_suite,
            )
        except ValidationError as e:
            logger.warning(
                "Rejected configuration update",
                extra={"errors": e.error_count(), "detail": str(e)},
            )
            self._notify_error(f"Invalid configuration: {e.error_count()} error(s)")
            return False

        host_changed = config.host != self.host
        suite_changed = config.suite != self.current_suite

        self.host = config.host
        self.keepalive_interval_ms = config.keepalive_interval_ms
        self.current_suite = config.suite
        self.reconnect_policy.max_retries = config.max_retries
        self.reconnect_policy.keepalive_interval_ms = config.keepalive_interval_ms

        logger.info(
            "Configuration updated",
            extra={
                "host": self.host,
                "keepalive_ms": self.keepalive_interval_ms,
                "max_retries": config.max_retries,
                "suite": self.current_suite,
            },
        )

        if (host_changed or suite_changed) and self.state != ConnectionState.DISCONNECTED:
            logger.info(
                "Host or suite changed, reconnecting",
                extra={"host_changed": host_changed, "suite_changed": suite_changed},
            )
            self.disconnect()
            _ = self.connect()
        return True

    def connect(self) -> asyncio.Task[None] | None:
        """Start a session from DISCONNECTED.

        Returns the task that binds the sockets and sends Packet 1 (awaitable
        by callers that want to know binding finished), or None if no attempt
        was started.
        """
        if not self.host:
            logger.warning("Cannot connect: no host configured")
            self._notify_error("No host configured")
            return None
        if self.state != ConnectionState.DISCONNECTED:
            logger.debug("Connect ignored, session already active", extra={"state": self.state.value})
            return self._open_task

        logger.info(
            "Connecting to K-Frame",
            extra={"host": self.host, "suite": self.current_suite, "max_retries": self.max_retries},
        )
        self._closing = False
        self.reconnect_policy.reset()
        self._start_attempt()
        return self._open_task

    def disconnect(self) -> None:
        """Tear the session down and report DISCONNECTED (safe in any state)."""
        logger.info("Disconnecting", extra={"state": self.state.value})
        self._cleanup()
        self._set_state(ConnectionState.DISCONNECTED)

    def _start_attempt(self) -> None:
        self._set_state(ConnectionState.CONNECTING)
        self.handshake.reset()
        self.heartbeat.reset()
        self.connection_attempts += 1
        self._open_task = asyncio.get_running_loop().create_task(
            self._open_session(self.connection_attempts),
            name=f"kframe-open-{self.connection_attempts}",
        )

    async def _open_session(self, attempt: int) -> None:
        set_correlation_id(generate_correlation_id())
        logger.info(
            "Connection attempt started",
            extra={"attempt": attempt, "retry": self.retry_count, "host": self.host},
        )

        sockets = self._socket_factory(
            self.host,
            self.ports,
            self._on_main_datagram,
            self._on_listener_datagram,
            self._on_socket_error,
        )
        self.sockets = sockets
        _ = self.timers.arm(
            TimerName.HANDSHAKE_TIMEOUT,
            self.timeout_config.handshake_timeout_seconds,
            self._on_handshake_timeout,
        )

        opened = await sockets.open()
        if self._closing or self.sockets is not sockets:
            # Disconnected while binding
            sockets.close()
            return
        if not opened:
            self._handle_connection_failure("bind_failed")
            return
        self._start_phase1()

    def _cleanup(self) -> None:
        if self._closing:
            return
        self._closing = True
        self.timers.cancel_all()
        self.heartbeat.reset()
        self._cancel_open_task()
        self._close_sockets()
        self.handshake.reset()
        self.reconnect_policy.reset()
        self.macro_ids.reset()

    def _cancel_open_task(self) -> None:
        task = self._open_task
        self._open_task = None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            _ = task.cancel()

    def _close_sockets(self) -> None:
        if self.sockets is not None:
            self.sockets.close()
            self.sockets = None

    # ------------------------------------------------------------------
    # Failure handling
    # ------------------------------------------------------------------

    def _handle_connection_failure(self, reason: str) -> None:
        if self._closing or self.state in (ConnectionState.DISCONNECTED, ConnectionState.RECONNECTING):
            logger.debug(
                "Failure ignored",
                extra={"reason": reason, "state": self.state.value, "closing": self._closing},
            )
            return

        was_connected = self.state == ConnectionState.CONNECTED
        self.timers.cancel_all()
        self.heartbeat.reset()
        self._cancel_open_task()
        self._close_sockets()
        if not was_connected:
            registry.record_handshake("failed")

        if self.reconnect_policy.register_failure():
            logger.warning(
                "Connection failed, reconnecting",
                extra={
                    "reason": reason,
                    "retry": self.retry_count,
                    "max_retries": self.max_retries,
                    "delay_seconds": self.reconnect_policy.delay_seconds,
                },
            )
            registry.record_reconnection(reason)
            self._set_state(ConnectionState.RECONNECTING)
            _ = self.timers.arm(
                TimerName.RECONNECT_DELAY,
                self.reconnect_policy.delay_seconds,
                self._on_reconnect_delay,
            )
            return

        logger.error(
            "Connection failed, retries exhausted",
            extra={"reason": reason, "max_retries": self.max_retries},
        )
        message = f"Max retries ({self.max_retries}) reached"
        self._cleanup()
        self._set_state(ConnectionState.DISCONNECTED)
        self._notify_error(message)

    def _on_reconnect_delay(self) -> None:
        if self.state != ConnectionState.RECONNECTING or self._closing:
            return
        self._start_attempt()

    def _on_handshake_timeout(self) -> None:
        logger.error(
            "Handshake timeout",
            extra={
                "stage": self.handshake.stage.name,
                "timeout_seconds": self.timeout_config.handshake_timeout_seconds,
            },
        )
        self._handle_connection_failure("handshake_timeout")

    def _on_socket_error(self, socket: str, exc: Exception) -> None:
        if self._closing or self.state == ConnectionState.DISCONNECTED:
            return
        self._notify_error(f"{socket} socket error: {exc}")
        self._handle_connection_failure("socket_error")

    # ------------------------------------------------------------------
    # Handshake
    # ------------------------------------------------------------------

    def _send(self, data: bytes, port: int) -> bool:
        if self.sockets is None or not self.sockets.is_open:
            return False
        return self.sockets.send_main(data, port)

    def _send_or_fail(self, data: bytes, port: int, reason: str) -> bool:
        if self._send(data, port):
            return True
        self._handle_connection_failure(reason)
        return False

    def _start_phase1(self) -> None:
        self._set_state(ConnectionState.HANDSHAKING)
        if not self._send_or_fail(PACKET_1, self.ports.remote_initial, "send_failed"):
            return
        self.handshake.begin_phase1()
        _ = self.timers.arm(
            TimerName.PACKET1_RETRY,
            self.timeout_config.packet1_retry_seconds,
            self._on_packet1_retry,
        )
        logger.debug("Phase 1 started", extra={"port": self.ports.remote_initial})

    def _on_packet1_retry(self) -> None:
        if self._closing or self.handshake.stage != HandshakeStage.EXPECT_P2:
            return
        logger.debug("No Packet 2 yet, resending Packet 1")
        if not self._send(PACKET_1, self.ports.remote_initial):
            logger.warning("Packet 1 resend failed")
        _ = self.timers.arm(
            TimerName.PACKET1_RETRY,
            self.timeout_config.packet1_retry_seconds,
            self._on_packet1_retry,
        )

    def _send_packet3(self) -> None:
        self.timers.cancel(TimerName.PACKET1_RETRY)
        _ = self._send_or_fail(PACKET_3, self.ports.remote_initial, "send_failed")

    def _send_packet5(self) -> None:
        _ = self._send_or_fail(PACKET_5, self.ports.remote_initial, "send_failed")

    def _on_phase1_complete(self) -> None:
        logger.info("Phase 1 complete", extra={"announced_port": self.handshake.announced_port})
        if self.handshake.announced_port:
            self._start_phase2()

    def _start_phase2(self) -> None:
        self.handshake.begin_phase2()
        logger.debug("Phase 2 started", extra={"port": self.handshake.announced_port})
        _ = self._send_or_fail(PACKET_12, self.handshake.announced_port, "send_failed")

    def _send_packet14(self) -> None:
        port = self.handshake.dynamic_port
        if port != self.handshake.announced_port:
            logger.info(
                "Device answered Phase 2 from a different port",
                extra={"announced_port": self.handshake.announced_port, "dynamic_port": port},
            )
        _ = self._send_or_fail(PACKET_14, port, "send_failed")

    def _send_packet16(self) -> None:
        sequence = self.handshake.next_sequence()
        payload = KFrameProtocol.encode_packet16(sequence)
        logger.debug("Sending Packet 16", extra={"sequence": sequence})
        _ = self._send_or_fail(payload, self.handshake.dynamic_port, "send_failed")

    def _complete_handshake(self) -> None:
        self.timers.cancel(TimerName.HANDSHAKE_TIMEOUT)
        self._set_state(ConnectionState.CONNECTED)
        self.reconnect_policy.reset()
        registry.record_handshake("success")
        logger.info(
            "Connected to K-Frame",
            extra={
                "host": self.host,
                "dynamic_port": self.handshake.dynamic_port,
                "suite": self.current_suite,
            },
        )
        try:
            command = KFrameProtocol.suite_command(self.current_suite)
        except CommandValidationError:
            logger.exception("Configured suite is unknown, skipping suite selection")
        else:
            _ = self._send_suite_sequence(command)
        self.heartbeat.start()

    def _restart_after_device_reset(self) -> None:
        logger.warning(
            "Device sent a session reset, restarting handshake",
            extra={"stage": self.handshake.stage.name, "state": self.state.value},
        )
        self.timers.cancel_all()
        self.heartbeat.reset()
        self.handshake.reset()
        self.macro_ids.awaiting_ack = None
        self._set_state(ConnectionState.HANDSHAKING)
        _ = self.timers.arm(
            TimerName.HANDSHAKE_TIMEOUT,
            self.timeout_config.handshake_timeout_seconds,
            self._on_handshake_timeout,
        )
        self._open_task = asyncio.get_running_loop().create_task(
            self._restart_handshake(),
            name="kframe-restart",
        )

    async def _restart_handshake(self) -> None:
        set_correlation_id(generate_correlation_id())
        sockets = self.sockets
        if sockets is None:
            return
        reopened = await sockets.reopen_listener()
        if self._closing or self.sockets is not sockets:
            return
        if not reopened:
            self._handle_connection_failure("bind_failed")
            return
        self._start_phase1()

    # ------------------------------------------------------------------
    # Inbound datagrams
    # ------------------------------------------------------------------

    def _is_device_reset(self, data: bytes, port: int) -> bool:
        return (
            data == PACKET_1
            and port == self.ports.remote_initial
            and self.handshake.stage > HandshakeStage.EXPECT_P2
        )

    def _on_main_datagram(self, data: bytes, addr: tuple[str, int]) -> None:
        if self._closing:
            return
        port = addr[1]

        if self._is_device_reset(data, port):
            self._restart_after_device_reset()
            return

        if self.handshake.is_connected:
            self._handle_session_datagram(data, port)
            return

        transition = self.handshake.match(MAIN_SOCKET, port, data)
        if transition is None:
            self._log_unknown(MAIN_SOCKET, data, port)
            return

        logger.debug(
            "Handshake %s -> %s",
            transition.stage.name,
            transition.next_stage.name,
            extra={"action": transition.action.value, "remote_port": port},
        )
        self.handshake.advance(transition, port)
        self._actions[transition.action]()

    def _on_listener_datagram(self, data: bytes, addr: tuple[str, int]) -> None:
        if self._closing:
            return
        port = addr[1]
        if port != self.ports.remote_announce or self.handshake.announced_port:
            self._log_unknown(LISTENER_SOCKET, data, port)
            return

        if data == PACKET_7:
            if self.sockets is None or not self.sockets.send_listener(PACKET_8, port):
                self._handle_connection_failure("send_failed")
            return

        if len(data) < ANNOUNCEMENT_MIN_LENGTH:
            self._log_unknown(LISTENER_SOCKET, data, port)
            return

        try:
            announced = KFrameProtocol.decode_port_announcement(data)
        except PacketDecodeError as e:
            logger.warning(
                "Ignoring port announcement",
                extra={"reason": e.reason, "data": e.data_preview},
            )
            return

        self.handshake.record_announcement(announced)
        logger.info("Device announced port", extra={"announced_port": announced})
        if self.sockets is None or not self.sockets.send_listener(PACKET_10, port):
            self._handle_connection_failure("send_failed")
            return
        self.sockets.close_listener()
        if self.handshake.phase1_complete:
            self._start_phase2()

    def _handle_session_datagram(self, data: bytes, port: int) -> None:
        if port != self.handshake.dynamic_port:
            self._log_unknown(MAIN_SOCKET, data, port)
            return

        ack_id = KFrameProtocol.parse_macro_ack(data)
        if ack_id is not None and self.macro_ids.awaiting_ack is not None:
            if self.macro_ids.acknowledge(ack_id):
                registry.record_macro_ack("matched")
                logger.debug("Macro ack received", extra={"macro_id": ack_id})
                return
            registry.record_macro_ack("unmatched")

        if data == HEARTBEAT_RESPONSE:
            self.heartbeat.response_received()
            return

        self._log_unknown(MAIN_SOCKET, data, port)

    def _log_unknown(self, socket: str, data: bytes, port: int) -> None:
        registry.record_unknown_packet(socket, self.handshake.stage.name)
        logger.debug(
            "[%s] Unrecognized datagram from port %d: %s",
            socket,
            port,
            data.hex(),
            extra={"socket": socket, "stage": self.handshake.stage.name, "remote_port": port},
        )

    # ------------------------------------------------------------------
    # Keepalive
    # ------------------------------------------------------------------

    def _send_heartbeat(self) -> bool:
        return self._send(HEARTBEAT, self.handshake.dynamic_port)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _require_session(self) -> None:
        if not self.is_connected():
            raise KFrameConnectionError(NOT_CONNECTED, state=self.state.value)

    def send_macro(self, macro_number: int) -> CommandResult:
        """Recall a macro (1-999) on the switcher."""
        try:
            self._require_session()
            KFrameProtocol.validate_macro_number(macro_number)
        except (KFrameConnectionError, CommandValidationError) as e:
            return self._report(CommandResult(False, CommandType.MACRO, str(e)))

        macro_id = self.macro_ids.allocate()
        payload = KFrameProtocol.encode_macro(macro_number, macro_id)
        self.macro_ids.mark_sent(macro_id)
        if not self._send(payload, self.handshake.dynamic_port):
            self.macro_ids.awaiting_ack = None
            return self._report(CommandResult(False, CommandType.MACRO, SEND_FAILED))

        logger.info("Macro sent", extra={"macro": macro_number, "macro_id": macro_id})
        return self._report(CommandResult(True, CommandType.MACRO))

    def send_aux_route(self, aux_number: int, source_number: int) -> CommandResult:
        """Route ``source_number`` (1-850) to AUX bus ``aux_number`` (1-96)."""
        try:
            self._require_session()
            KFrameProtocol.validate_aux_route(aux_number, source_number)
        except (KFrameConnectionError, CommandValidationError) as e:
            return self._report(CommandResult(False, CommandType.AUX_ROUTE, str(e)))

        payload = KFrameProtocol.encode_aux_route(aux_number, source_number)
        if not self._send(payload, self.handshake.dynamic_port):
            return self._report(CommandResult(False, CommandType.AUX_ROUTE, SEND_FAILED))

        logger.info("AUX route sent", extra={"aux": aux_number, "source": source_number})
        return self._report(CommandResult(True, CommandType.AUX_ROUTE))

    def set_suite(self, suite_id: str) -> CommandResult:
        """Make ``suite_id`` the session suite and switch to it now.

        The suite is stored even when not connected (it is applied at the
        next handshake), but the result still reports the live send.
        """
        try:
            _ = KFrameProtocol.suite_command(suite_id)
        except CommandValidationError as e:
            return self._report(CommandResult(False, CommandType.SUITE_SWITCH, str(e)))
        self.current_suite = suite_id
        return self.send_suite_switch(suite_id)

    def send_suite_switch(self, suite_id: str) -> CommandResult:
        """Send the two-packet suite sequence without changing the stored suite."""
        try:
            self._require_session()
            command = KFrameProtocol.suite_command(suite_id)
        except (KFrameConnectionError, CommandValidationError) as e:
            return self._report(CommandResult(False, CommandType.SUITE_SWITCH, str(e)))

        if not self._send_suite_sequence(command):
            return self._report(CommandResult(False, CommandType.SUITE_SWITCH, SEND_FAILED))
        return self._report(CommandResult(True, CommandType.SUITE_SWITCH))

    def _send_suite_sequence(self, command: SuiteCommand) -> bool:
        if not self._send(command.first, self.handshake.dynamic_port):
            return False
        logger.info("Suite selected", extra={"suite": command.suite_id, "label": command.label})
        _ = self.timers.arm(
            TimerName.SUITE_FOLLOWUP,
            self.timeout_config.suite_followup_seconds,
            lambda: self._send_suite_followup(command),
        )
        return True

    def _send_suite_followup(self, command: SuiteCommand) -> None:
        if self._closing or not self.is_connected():
            return
        if not self._send(command.second, self.handshake.dynamic_port):
            logger.warning("Suite follow-up send failed", extra={"suite": command.suite_id})

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _set_state(self, state: ConnectionState) -> None:
        if state == self.state:
            return
        previous = self.state
        self.state = state
        registry.record_connection_state(state.value)
        logger.info(
            "Connection state: %s -> %s",
            previous.value,
            state.value,
            extra={"from_state": previous.value, "to_state": state.value},
        )
        if self.callbacks is not None:
            try:
                self.callbacks.on_state_change(state)
            except Exception:
                logger.exception("on_state_change callback raised")

    def _report(self, result: CommandResult) -> CommandResult:
        registry.record_command(result.command.value, "success" if result.success else "failure")
        if not result.success:
            logger.warning(
                "Command failed",
                extra={"command": result.command.value, "error": result.error},
            )
        if self.callbacks is not None:
            try:
                self.callbacks.on_command_result(result)
            except Exception:
                logger.exception("on_command_result callback raised")
        return result

    def _notify_error(self, message: str) -> None:
        if self.callbacks is not None:
            try:
                self.callbacks.on_error(message)
            except Exception:
                logger.exception("on_error callback raised")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"ConnectionManager(host={self.host!r}, state={self.state.value}, "
            f"stage={self.handshake.stage.name}, retry={self.retry_count}/{self.max_retries})"
        )
