"""Custom exception types for K-Frame protocol errors.

This module defines the exception hierarchy for codec-level errors. The
session engine catches these at its public boundary and converts them into
failed command results, so none of them escape to callers of the engine.
"""

from __future__ import annotations


class KFrameProtocolError(Exception):
    """Base exception for all K-Frame protocol errors.

    All protocol-related exceptions inherit from this base class,
    enabling catch-all error handling when needed while maintaining
    specific exception types for detailed handling.
    """


class PacketDecodeError(KFrameProtocolError):
    """Inbound datagram does not have the shape expected for its message type.

    Raised when the port announcement is too short or carries port zero.

    Attributes:
        reason: Specific failure reason (e.g., "too_short", "invalid_port")
        data_preview: First 24 bytes of the datagram

    """

    def __init__(self, reason: str, data: bytes = b"") -> None:
        """Initialize decode error with reason and a bounded data preview."""
        self.reason: str = reason
        self.data_preview: bytes = data[:24] if data else b""
        super().__init__(f"Packet decode failed: {reason}")


class CommandValidationError(KFrameProtocolError):
    """Command argument outside the range the device accepts.

    Raised by the codec for macro numbers outside 1-999, AUX buses outside
    1-96, sources outside 1-850 and unknown suite ids.

    Attributes:
        field: Name of the offending argument
        value: The rejected value

    """

    def __init__(self, message: str, field: str, value: object) -> None:
        """Initialize validation error; ``message`` is surfaced to the caller as-is."""
        self.field: str = field
        self.value: object = value
        super().__init__(message)
