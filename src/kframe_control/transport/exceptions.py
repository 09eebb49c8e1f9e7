"""Custom exception types for K-Frame transport errors.

This module defines the exception hierarchy for session-level errors,
extending the protocol exceptions.
"""

from __future__ import annotations

from kframe_control.protocol.exceptions import KFrameProtocolError


class KFrameConnectionError(KFrameProtocolError):
    """Connection state error (command issued before the session is live).

    Raised when:
    - Sending a command while not Connected
    - Sending a command before the Phase 2 handshake reached its final stage

    Note: Named KFrameConnectionError to avoid shadowing Python's built-in ConnectionError.

    Attributes:
        reason: Specific failure reason
        state: Connection state when error occurred

    """

    def __init__(self, reason: str, state: str = "unknown") -> None:
        """Initialize connection error with reason and state."""
        self.reason: str = reason
        self.state: str = state
        super().__init__(reason)
