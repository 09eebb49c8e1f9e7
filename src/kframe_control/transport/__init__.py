"""K-Frame transport package - UDP socket pair, handshake, keepalive, session engine.

Public API:
- ConnectionManager: session lifecycle, handshake, keepalive and commands
- ConnectionState / CommandType / CommandResult / ConnectionCallbacks
- HandshakeStage and the explicit transition table
- ReconnectPolicy / TimeoutConfig
- KFrameConnectionError
"""

from kframe_control.transport.connection_manager import ConnectionManager
from kframe_control.transport.exceptions import KFrameConnectionError
from kframe_control.transport.handshake import HANDSHAKE_TRANSITIONS, HandshakeStage, HandshakeStateMachine
from kframe_control.transport.retry_policy import ReconnectPolicy, TimeoutConfig
from kframe_control.transport.socket_abstraction import UdpSocketPair
from kframe_control.transport.types import CommandResult, CommandType, ConnectionCallbacks, ConnectionState

__all__ = [
    "HANDSHAKE_TRANSITIONS",
    "CommandResult",
    "CommandType",
    "ConnectionCallbacks",
    "ConnectionManager",
    "ConnectionState",
    "HandshakeStage",
    "HandshakeStateMachine",
    "KFrameConnectionError",
    "ReconnectPolicy",
    "TimeoutConfig",
    "UdpSocketPair",
]
