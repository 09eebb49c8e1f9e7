"""Unit tests for the handshake transition table."""

from __future__ import annotations

import pytest

from kframe_control.protocol.payloads import PACKET_2, PACKET_6, PACKET_13, PACKET_17, UdpPorts
from kframe_control.transport.handshake import (
    HANDSHAKE_TRANSITIONS,
    HandshakeAction,
    HandshakeStage,
    HandshakeStateMachine,
    PortRole,
)
from kframe_control.transport.socket_abstraction import LISTENER_SOCKET, MAIN_SOCKET

DYNAMIC_PORT = 50123


@pytest.fixture
def machine() -> HandshakeStateMachine:
    return HandshakeStateMachine(UdpPorts())


class TestTransitionTable:
    """Tests for the table itself."""

    def test_rows_move_forward(self):
        """Every row advances to exactly the next stage."""
        for transition in HANDSHAKE_TRANSITIONS:
            assert transition.next_stage == transition.stage + 1

    def test_rows_are_main_socket_only(self):
        """The announcement is handled outside the table."""
        assert {t.socket for t in HANDSHAKE_TRANSITIONS} == {MAIN_SOCKET}

    def test_phase1_rows_use_initial_port(self):
        """Phase 1 accepts only the device's initial port."""
        phase1 = [t for t in HANDSHAKE_TRANSITIONS if t.stage < HandshakeStage.WAIT_ANNOUNCE]

        assert len(phase1) == 3
        assert all(t.port_role is PortRole.INITIAL for t in phase1)


class TestPhase1:
    """Tests for matching during Phase 1."""

    def test_nothing_matches_in_init(self, machine):
        """No row fires before Packet 1 is sent."""
        assert machine.match(MAIN_SOCKET, 5000, PACKET_2) is None

    def test_packet2_from_initial_port(self, machine):
        """Packet 2 from 5000 sends Packet 3."""
        machine.begin_phase1()

        transition = machine.match(MAIN_SOCKET, 5000, PACKET_2)

        assert transition is not None
        assert transition.action is HandshakeAction.SEND_PACKET_3
        machine.advance(transition, 5000)
        assert machine.stage == HandshakeStage.EXPECT_P4

    def test_wrong_port_ignored(self, machine):
        """Packet 2 from any other port matches nothing."""
        machine.begin_phase1()

        assert machine.match(MAIN_SOCKET, 5001, PACKET_2) is None
        assert machine.match(MAIN_SOCKET, DYNAMIC_PORT, PACKET_2) is None

    def test_wrong_socket_ignored(self, machine):
        """Handshake replies on the listener socket match nothing."""
        machine.begin_phase1()

        assert machine.match(LISTENER_SOCKET, 5000, PACKET_2) is None

    def test_out_of_order_ignored(self, machine):
        """Packet 6 while expecting Packet 2 matches nothing."""
        machine.begin_phase1()

        assert machine.match(MAIN_SOCKET, 5000, PACKET_6) is None
        assert machine.stage == HandshakeStage.EXPECT_P2

    def test_phase1_complete(self, machine):
        """Packet 6 lands in WAIT_ANNOUNCE."""
        machine.stage = HandshakeStage.EXPECT_P6

        transition = machine.match(MAIN_SOCKET, 5000, PACKET_6)
        machine.advance(transition, 5000)

        assert machine.phase1_complete is True
        assert transition.action is HandshakeAction.PHASE1_COMPLETE


class TestPhase2:
    """Tests for matching during Phase 2."""

    def test_packet13_sets_dynamic_port(self, machine):
        """The origin of Packet 13 becomes the dynamic port."""
        machine.record_announcement(6200)
        machine.begin_phase2()

        transition = machine.match(MAIN_SOCKET, DYNAMIC_PORT, PACKET_13)
        machine.advance(transition, DYNAMIC_PORT)

        assert transition.action is HandshakeAction.SEND_PACKET_14
        assert machine.dynamic_port == DYNAMIC_PORT
        assert machine.stage == HandshakeStage.EXPECT_P15

    @pytest.mark.parametrize("port", [5000, 5001])
    def test_packet13_from_fixed_port_ignored(self, machine, port):
        """Packet 13 from the device's fixed ports matches nothing."""
        machine.begin_phase2()

        assert machine.match(MAIN_SOCKET, port, PACKET_13) is None

    def test_later_rows_require_dynamic_port(self, machine):
        """Packets 15 and 17 only count from the dynamic port."""
        machine.stage = HandshakeStage.EXPECT_P17
        machine.dynamic_port = DYNAMIC_PORT

        assert machine.match(MAIN_SOCKET, DYNAMIC_PORT + 1, PACKET_17) is None
        transition = machine.match(MAIN_SOCKET, DYNAMIC_PORT, PACKET_17)
        machine.advance(transition, DYNAMIC_PORT)

        assert machine.is_connected is True

    def test_dynamic_role_without_port(self, machine):
        """An unset dynamic port never matches."""
        assert machine.port_matches(PortRole.DYNAMIC, 0) is False


class TestSequenceAndReset:
    """Tests for the Packet 16 sequence and reset()."""

    def test_sequence_starts_at_three(self, machine):
        """Sequence values start at 3 and increment."""
        assert [machine.next_sequence() for _ in range(3)] == [3, 4, 5]

    def test_sequence_wraps(self, machine):
        """The sequence wraps at 16 bits."""
        machine.sequence = 0xFFFF

        assert machine.next_sequence() == 0xFFFF
        assert machine.sequence == 0

    def test_reset_keeps_sequence(self, machine):
        """reset() clears stage and ports but not the sequence."""
        machine.begin_phase2()
        machine.record_announcement(6200)
        machine.dynamic_port = DYNAMIC_PORT
        _ = machine.next_sequence()

        machine.reset()

        assert machine.stage == HandshakeStage.INIT
        assert (machine.announced_port, machine.dynamic_port) == (0, 0)
        assert machine.sequence == 4
