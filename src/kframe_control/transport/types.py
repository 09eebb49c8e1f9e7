"""Core types shared by the K-Frame session engine and its host adapter."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class ConnectionState(Enum):
    """Externally observable connection state."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    HANDSHAKING = "handshaking"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


class CommandType(Enum):
    """Command kinds reported in command results."""

    MACRO = "macro"
    AUX_ROUTE = "aux"
    SUITE_SWITCH = "suite"


@dataclass(frozen=True)
class CommandResult:
    """Result of a command issued through the engine.

    Attributes:
        success: Whether the payload was handed to the socket
        command: Command kind
        error: Error reason if success=False (None if success=True)

    """

    success: bool
    command: CommandType
    error: str | None = None


class ConnectionCallbacks(Protocol):
    """Notifications produced by the engine for its host."""

    def on_state_change(self, state: ConnectionState) -> None: ...

    def on_command_result(self, result: CommandResult) -> None: ...

    def on_error(self, message: str) -> None: ...
