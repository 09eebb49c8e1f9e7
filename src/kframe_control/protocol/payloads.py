"""K-Frame wire constants: handshake packets, heartbeat, command templates, suites.

All packets are fixed-layout binary blobs. There is no length header and no
generic parser; every inbound message is recognized by exact byte equality
(or, for the port announcement, by a fixed offset in a minimum-length buffer).

Packet Overview:
- 1-6: Phase 1 handshake (client main socket <-> device initial port)
- 7-10: Port announcement (client listener socket <-> device announce port)
- 12-17: Phase 2 handshake (client main socket <-> device dynamic port)
- Heartbeat: client -> dynamic port, response device -> client
- Macro / AUX / suite: commands on the dynamic port once connected
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

# Phase 1 (main socket <-> device initial port)
PACKET_1: Final = bytes.fromhex("00060000")  # Client -> Device: session open (also a device-side reset)
PACKET_2: Final = bytes.fromhex("00020000")  # Device -> Client: open ack
PACKET_3: Final = bytes.fromhex("00010000")  # Client -> Device
PACKET_4: Final = bytes.fromhex("00020000")  # Device -> Client
PACKET_5: Final = bytes.fromhex("000400010002001f0000000b0000002c00010000636c69656e7400")  # Client identification
PACKET_6: Final = bytes.fromhex("00020001")  # Device -> Client: Phase 1 complete

# Port announcement (listener socket <-> device announce port)
PACKET_7: Final = bytes.fromhex("00010000")  # Device -> Client
PACKET_8: Final = bytes.fromhex("00020000")  # Client -> Device
PACKET_10: Final = bytes.fromhex("00020001")  # Client -> Device: announcement ack
ANNOUNCEMENT_MIN_LENGTH: Final = 20
ANNOUNCEMENT_PORT_OFFSET: Final = 18  # u16 big-endian

# Phase 2 (main socket <-> device dynamic port)
PACKET_12: Final = bytes.fromhex("00060000")
PACKET_13: Final = bytes.fromhex("00020000")
PACKET_14: Final = bytes.fromhex("00010000")
PACKET_15: Final = bytes.fromhex("00020000")
PACKET_16_BASE: Final = bytes.fromhex("000400010002001f0000000b0000002c")
PACKET_16_CLIENT: Final = bytes.fromhex("636c69656e7400")  # b"client\x00"
PACKET_16_INITIAL_SEQUENCE: Final = 3
PACKET_17: Final = bytes.fromhex("00020001")

# Heartbeat
HEARTBEAT: Final = bytes.fromhex("00010000")
HEARTBEAT_RESPONSE: Final = bytes.fromhex("00020000")

# Macro recall: 000403 <id:u8> <body> <index:u16be> 0000
MACRO_PREFIX: Final = bytes.fromhex("000403")
MACRO_BODY: Final = bytes.fromhex("000200050000000c000000130002000077000000")
MACRO_TRAILER: Final = bytes.fromhex("0000")
MACRO_INDEX_OFFSET: Final = len(MACRO_PREFIX) + 1 + len(MACRO_BODY)
MACRO_ACK_PREFIX: Final = bytes.fromhex("000203")  # followed by the echoed id
MACRO_ACK_LENGTH: Final = 4

# AUX route: 0004 <msgid:u16be> <body> 190001 <aux:u8> <source:u16be> 0001
AUX_PREFIX: Final = bytes.fromhex("0004")
AUX_BODY: Final = bytes.fromhex("000200050000000c00000013007e0000")
AUX_ROUTE_MARKER: Final = bytes.fromhex("190001")
AUX_TRAILER: Final = bytes.fromhex("0001")
AUX_INDEX_OFFSET: Final = len(AUX_PREFIX) + 2 + len(AUX_BODY) + len(AUX_ROUTE_MARKER)
AUX_SOURCE_OFFSET: Final = AUX_INDEX_OFFSET + 1

# Command ranges (logical, one-based)
MACRO_MIN: Final = 1
MACRO_MAX: Final = 999
AUX_MIN: Final = 1
AUX_MAX: Final = 96
SOURCE_MIN: Final = 1
SOURCE_MAX: Final = 850


@dataclass(frozen=True)
class SuiteCommand:
    """Two-packet suite selection sequence.

    Attributes:
        suite_id: Suite identifier (``suite1a`` .. ``suite4b``)
        label: Display label
        first: Packet sent immediately
        second: Packet sent after the follow-up delay

    """

    suite_id: str
    label: str
    first: bytes
    second: bytes


_SUITE_TAIL_A: Final = bytes.fromhex("000407a700020005000000090000001004b600000100000700")
_SUITE_TAIL_B: Final = bytes.fromhex("000407ab00020005000000090000001004b600000100000700")

SUITE_COMMANDS: Final[dict[str, SuiteCommand]] = {
    cmd.suite_id: cmd
    for cmd in (
        SuiteCommand(
            "suite1a",
            "Suite 1A",
            bytes.fromhex("0004017c000200060000000c0000001417960200010000070000000a"),
            _SUITE_TAIL_A,
        ),
        SuiteCommand(
            "suite1b",
            "Suite 1B",
            bytes.fromhex("0004017c000200060000000c0000001417960200010000070000000b"),
            _SUITE_TAIL_A,
        ),
        SuiteCommand(
            "suite2a",
            "Suite 2A",
            bytes.fromhex("0004017a000200060000000c0000001417960200010000070000000c"),
            _SUITE_TAIL_A,
        ),
        SuiteCommand(
            "suite2b",
            "Suite 2B",
            bytes.fromhex("0004017a000200060000000c0000001417960200010000070000000d"),
            _SUITE_TAIL_A,
        ),
        SuiteCommand(
            "suite3a",
            "Suite 3A",
            bytes.fromhex("0004017e000200060000000c0000001417960200010000070000000e"),
            _SUITE_TAIL_B,
        ),
        SuiteCommand(
            "suite3b",
            "Suite 3B",
            bytes.fromhex("0004017e000200060000000c0000001417960200010000070000000f"),
            _SUITE_TAIL_B,
        ),
        SuiteCommand(
            "suite4a",
            "Suite 4A",
            bytes.fromhex("000401f7000200060000000c00000014179602000100000700000010"),
            _SUITE_TAIL_B,
        ),
        SuiteCommand(
            "suite4b",
            "Suite 4B",
            bytes.fromhex("00040232000200060000000c00000014179602000100000700000011"),
            _SUITE_TAIL_B,
        ),
    )
}

SUITE_IDS: Final = tuple(SUITE_COMMANDS)
DEFAULT_SUITE: Final = "suite1a"


@dataclass(frozen=True)
class UdpPorts:
    """Local and remote UDP ports used by one session.

    Production uses the defaults; tests and the loopback mock device bind
    ephemeral ports (``0`` for the local side).

    Attributes:
        local_main: Client port for both handshakes, commands and heartbeats
        local_listener: Client port that only receives the port announcement
        remote_initial: Device port for Phase 1
        remote_announce: Device port that runs the port announcement

    """

    local_main: int = 6130
    local_listener: int = 6131
    remote_initial: int = 5000
    remote_announce: int = 5001
