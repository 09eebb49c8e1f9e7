"""Two-phase K-Frame handshake as an explicit transition table.

Each row maps (current stage, receiving socket, origin port role, expected
bytes) to (next stage, action). The engine looks up the row for every inbound
datagram and runs the action; anything without a row is logged and dropped
and never moves the stage.

Stage order::

    INIT -> EXPECT_P2 -> EXPECT_P4 -> EXPECT_P6 -> WAIT_ANNOUNCE
         -> EXPECT_P13 -> EXPECT_P15 -> EXPECT_P17 -> CONNECTED
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

from kframe_control.protocol.payloads import (
    PACKET_2,
    PACKET_4,
    PACKET_6,
    PACKET_13,
    PACKET_15,
    PACKET_16_INITIAL_SEQUENCE,
    PACKET_17,
    UdpPorts,
)
from kframe_control.transport.socket_abstraction import MAIN_SOCKET


class HandshakeStage(IntEnum):
    """Fine-grained handshake progress (forward-only except on reset)."""

    INIT = 1
    EXPECT_P2 = 2
    EXPECT_P4 = 3
    EXPECT_P6 = 4
    WAIT_ANNOUNCE = 5
    EXPECT_P13 = 6
    EXPECT_P15 = 7
    EXPECT_P17 = 8
    CONNECTED = 9


class PortRole(Enum):
    """Which remote port a row accepts datagrams from."""

    INITIAL = "initial"  # device well-known service port
    PHASE2_PEER = "phase2_peer"  # any port other than the device's fixed ports
    DYNAMIC = "dynamic"  # the recorded dynamicCommPort


class HandshakeAction(Enum):
    """Side effect the engine runs after a row fires."""

    SEND_PACKET_3 = "send_packet_3"
    SEND_PACKET_5 = "send_packet_5"
    PHASE1_COMPLETE = "phase1_complete"
    SEND_PACKET_14 = "send_packet_14"
    SEND_PACKET_16 = "send_packet_16"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Transition:
    """One edge of the handshake state machine."""

    stage: HandshakeStage
    socket: str
    port_role: PortRole
    expected: bytes
    next_stage: HandshakeStage
    action: HandshakeAction


HANDSHAKE_TRANSITIONS: tuple[Transition, ...] = (
    # Phase 1
    Transition(
        HandshakeStage.EXPECT_P2,
        MAIN_SOCKET,
        PortRole.INITIAL,
        PACKET_2,
        HandshakeStage.EXPECT_P4,
        HandshakeAction.SEND_PACKET_3,
    ),
    Transition(
        HandshakeStage.EXPECT_P4,
        MAIN_SOCKET,
        PortRole.INITIAL,
        PACKET_4,
        HandshakeStage.EXPECT_P6,
        HandshakeAction.SEND_PACKET_5,
    ),
    Transition(
        HandshakeStage.EXPECT_P6,
        MAIN_SOCKET,
        PortRole.INITIAL,
        PACKET_6,
        HandshakeStage.WAIT_ANNOUNCE,
        HandshakeAction.PHASE1_COMPLETE,
    ),
    # Phase 2
    Transition(
        HandshakeStage.EXPECT_P13,
        MAIN_SOCKET,
        PortRole.PHASE2_PEER,
        PACKET_13,
        HandshakeStage.EXPECT_P15,
        HandshakeAction.SEND_PACKET_14,
    ),
    Transition(
        HandshakeStage.EXPECT_P15,
        MAIN_SOCKET,
        PortRole.DYNAMIC,
        PACKET_15,
        HandshakeStage.EXPECT_P17,
        HandshakeAction.SEND_PACKET_16,
    ),
    Transition(
        HandshakeStage.EXPECT_P17,
        MAIN_SOCKET,
        PortRole.DYNAMIC,
        PACKET_17,
        HandshakeStage.CONNECTED,
        HandshakeAction.COMPLETE,
    ),
)


class HandshakeStateMachine:
    """Stage and negotiated addressing for one session.

    ``announced_port`` is where Packet 12 goes; ``dynamic_port`` is the origin
    port of the Packet 13 reply and carries all later traffic. Both are zero
    until known. The Packet 16 sequence survives resets.
    """

    def __init__(self, ports: UdpPorts, transitions: tuple[Transition, ...] = HANDSHAKE_TRANSITIONS) -> None:
        self.ports = ports
        self.transitions = transitions
        self.stage: HandshakeStage = HandshakeStage.INIT
        self.announced_port: int = 0
        self.dynamic_port: int = 0
        self.sequence: int = PACKET_16_INITIAL_SEQUENCE

    def port_matches(self, role: PortRole, port: int) -> bool:
        """Check ``port`` against the port a row expects."""
        if role is PortRole.INITIAL:
            return port == self.ports.remote_initial
        if role is PortRole.DYNAMIC:
            return self.dynamic_port != 0 and port == self.dynamic_port
        return port not in (self.ports.remote_initial, self.ports.remote_announce)

    def match(self, socket: str, port: int, data: bytes) -> Transition | None:
        """Return the row that accepts ``data`` at the current stage, if any."""
        for transition in self.transitions:
            if (
                transition.stage == self.stage
                and transition.socket == socket
                and data == transition.expected
                and self.port_matches(transition.port_role, port)
            ):
                return transition
        return None

    def advance(self, transition: Transition, origin_port: int) -> None:
        """Apply ``transition``; Packet 13's origin port becomes the dynamic port."""
        if transition.action is HandshakeAction.SEND_PACKET_14:
            self.dynamic_port = origin_port
        self.stage = transition.next_stage

    def begin_phase1(self) -> None:
        """Packet 1 sent; await Packet 2."""
        self.stage = HandshakeStage.EXPECT_P2

    def begin_phase2(self) -> None:
        """Packet 12 sent; await Packet 13."""
        self.stage = HandshakeStage.EXPECT_P13

    def record_announcement(self, port: int) -> None:
        """Store the port the device announced on the listener socket."""
        self.announced_port = port

    def next_sequence(self) -> int:
        """Return the Packet 16 sequence value and advance it (16-bit wrap)."""
        value = self.sequence
        self.sequence = (self.sequence + 1) & 0xFFFF
        return value

    def reset(self) -> None:
        """Back to INIT with no negotiated ports."""
        self.stage = HandshakeStage.INIT
        self.announced_port = 0
        self.dynamic_port = 0

    @property
    def phase1_complete(self) -> bool:
        """True while waiting only on the port announcement."""
        return self.stage == HandshakeStage.WAIT_ANNOUNCE

    @property
    def is_connected(self) -> bool:
        """True once Packet 17 has been received."""
        return self.stage == HandshakeStage.CONNECTED

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"HandshakeStateMachine(stage={self.stage.name}, announced={self.announced_port}, "
            f"dynamic={self.dynamic_port}, sequence={self.sequence})"
        )
