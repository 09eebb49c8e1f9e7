"""K-Frame protocol package - wire constants, command codec, macro correlation ids.

Public API:
- Wire constants and suite catalog (payloads)
- Protocol encoder/decoder (KFrameProtocol)
- Macro correlation id allocator (MacroIdAllocator)
"""

from kframe_control.protocol.codec import KFrameProtocol
from kframe_control.protocol.exceptions import CommandValidationError, KFrameProtocolError, PacketDecodeError
from kframe_control.protocol.macro_ids import MacroIdAllocator
from kframe_control.protocol.payloads import DEFAULT_SUITE, SUITE_COMMANDS, SUITE_IDS, SuiteCommand, UdpPorts

__all__ = [
    "DEFAULT_SUITE",
    "SUITE_COMMANDS",
    "SUITE_IDS",
    "CommandValidationError",
    "KFrameProtocol",
    "KFrameProtocolError",
    "MacroIdAllocator",
    "PacketDecodeError",
    "SuiteCommand",
    "UdpPorts",
]
