"""K-Frame command encoder and inbound message decoder.

Stamps the variable fields (macro correlation id, macro index, AUX index,
source id, random AUX message id, Packet 16 sequence) into the fixed
templates from :mod:`kframe_control.protocol.payloads`, and recognizes the
two inbound shapes that carry data (port announcement, macro ack).
"""

from __future__ import annotations

import logging
import random
import struct

from kframe_control.protocol.exceptions import CommandValidationError, PacketDecodeError
from kframe_control.protocol.payloads import (
    ANNOUNCEMENT_MIN_LENGTH,
    ANNOUNCEMENT_PORT_OFFSET,
    AUX_BODY,
    AUX_MAX,
    AUX_MIN,
    AUX_PREFIX,
    AUX_ROUTE_MARKER,
    AUX_TRAILER,
    MACRO_ACK_LENGTH,
    MACRO_ACK_PREFIX,
    MACRO_BODY,
    MACRO_MAX,
    MACRO_MIN,
    MACRO_PREFIX,
    MACRO_TRAILER,
    PACKET_16_BASE,
    PACKET_16_CLIENT,
    SOURCE_MAX,
    SOURCE_MIN,
    SUITE_COMMANDS,
    SuiteCommand,
)

logger = logging.getLogger(__name__)

_U16_MAX = 0xFFFF
_U8_MAX = 0xFF


def _in_range(value: object, low: int, high: int) -> bool:
    # bool is an int subclass but never a valid number here
    return isinstance(value, int) and not isinstance(value, bool) and low <= value <= high


class KFrameProtocol:
    """K-Frame protocol encoder/decoder.

    Provides static methods for building outbound command payloads and
    decoding the inbound messages that carry fields. All methods are
    stateless - correlation ids and sequence numbers are owned by the caller.
    """

    @staticmethod
    def validate_macro_number(macro_number: int) -> None:
        """Raise CommandValidationError unless ``macro_number`` is an integer within 1-999."""
        if not _in_range(macro_number, MACRO_MIN, MACRO_MAX):
            error_msg = f"Invalid macro number (must be {MACRO_MIN}-{MACRO_MAX})"
            raise CommandValidationError(error_msg, "macro_number", macro_number)

    @staticmethod
    def validate_aux_route(aux_number: int, source_number: int) -> None:
        """Raise CommandValidationError unless AUX is an integer 1-96 and source an integer 1-850."""
        if not _in_range(aux_number, AUX_MIN, AUX_MAX):
            error_msg = f"Invalid aux number (must be {AUX_MIN}-{AUX_MAX})"
            raise CommandValidationError(error_msg, "aux_number", aux_number)
        if not _in_range(source_number, SOURCE_MIN, SOURCE_MAX):
            error_msg = f"Invalid source number (must be {SOURCE_MIN}-{SOURCE_MAX})"
            raise CommandValidationError(error_msg, "source_number", source_number)

    @staticmethod
    def encode_macro(macro_number: int, macro_id: int) -> bytes:
        """Encode a macro recall command.

        Layout: ``000403 <id:u8> <body> <macro_number-1:u16be> 0000``

        Args:
            macro_number: Logical macro number (1-999)
            macro_id: One-byte correlation id echoed by the device ack

        Returns:
            28-byte macro payload

        Raises:
            CommandValidationError: If macro_number or macro_id is out of range

        Example:
            >>> payload = KFrameProtocol.encode_macro(1, 0x2A)
            >>> payload[:4].hex()
            '0004032a'
            >>> payload[24:26].hex()
            '0000'

        """
        KFrameProtocol.validate_macro_number(macro_number)
        if not _in_range(macro_id, 0, _U8_MAX):
            error_msg = "Invalid macro correlation id (must be 0-255)"
            raise CommandValidationError(error_msg, "macro_id", macro_id)

        payload = (
            MACRO_PREFIX
            + bytes([macro_id])
            + MACRO_BODY
            + struct.pack(">H", macro_number - 1)
            + MACRO_TRAILER
        )
        logger.debug(
            "Encoded macro %d with id %d",
            macro_number,
            macro_id,
            extra={"macro_number": macro_number, "macro_id": macro_id, "payload": payload.hex()},
        )
        return payload

    @staticmethod
    def encode_aux_route(aux_number: int, source_number: int, message_id: int | None = None) -> bytes:
        """Encode an AUX bus route command.

        Layout: ``0004 <msgid:u16be> <body> 190001 <aux-1:u8> <source:u16be> 0001``

        The message id is random and not tracked; the device does not ack AUX routes.

        Args:
            aux_number: AUX bus number (1-96)
            source_number: Source id (1-850)
            message_id: Explicit 16-bit message id (random when None)

        Returns:
            28-byte AUX payload

        Raises:
            CommandValidationError: If aux_number or source_number is out of range

        """
        KFrameProtocol.validate_aux_route(aux_number, source_number)
        if message_id is None:
            message_id = random.randrange(_U16_MAX + 1)

        payload = (
            AUX_PREFIX
            + struct.pack(">H", message_id)
            + AUX_BODY
            + AUX_ROUTE_MARKER
            + struct.pack(">BH", aux_number - 1, source_number)
            + AUX_TRAILER
        )
        logger.debug(
            "Encoded aux %d -> source %d",
            aux_number,
            source_number,
            extra={"aux_number": aux_number, "source_number": source_number, "message_id": message_id},
        )
        return payload

    @staticmethod
    def encode_packet16(sequence: int) -> bytes:
        """Encode the Phase 2 identification packet.

        Layout: ``<base> <sequence:u16be> 0000 636c69656e7400``

        Example:
            >>> KFrameProtocol.encode_packet16(3)[16:20].hex()
            '00030000'

        """
        return PACKET_16_BASE + struct.pack(">HH", sequence & _U16_MAX, 0) + PACKET_16_CLIENT

    @staticmethod
    def decode_port_announcement(data: bytes) -> int:
        """Read the announced dynamic port from Packet 9.

        Args:
            data: Datagram received on the listener socket

        Returns:
            Announced port (1-65535)

        Raises:
            PacketDecodeError: If the datagram is shorter than 20 bytes or announces port 0

        """
        if len(data) < ANNOUNCEMENT_MIN_LENGTH:
            error_reason = "too_short"
            raise PacketDecodeError(error_reason, data)

        (port,) = struct.unpack_from(">H", data, ANNOUNCEMENT_PORT_OFFSET)
        if port == 0:
            error_reason = "invalid_port"
            raise PacketDecodeError(error_reason, data)
        return port

    @staticmethod
    def parse_macro_ack(data: bytes) -> int | None:
        """Return the echoed correlation id if ``data`` is a macro ack, else None."""
        if len(data) == MACRO_ACK_LENGTH and data.startswith(MACRO_ACK_PREFIX):
            return data[3]
        return None

    @staticmethod
    def suite_command(suite_id: str) -> SuiteCommand:
        """Look up the two-packet sequence for ``suite_id``.

        Raises:
            CommandValidationError: If the suite id is unknown

        """
        try:
            return SUITE_COMMANDS[suite_id]
        except KeyError:
            error_msg = f"Invalid suite: {suite_id}"
            raise CommandValidationError(error_msg, "suite", suite_id) from None
