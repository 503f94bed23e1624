"""Tests for the device session request/response flow."""

import datetime
from unittest.mock import MagicMock, patch

import pytest

from soyal_ar727.exceptions import (
    ChecksumError,
    DeviceRejectedError,
    ShortFrameError,
    TransportError,
)
from soyal_ar727.protocol.commands import Command, STATUS_ENABLED_LEGACY
from soyal_ar727.protocol.framing import ACK, NACK, build_frame, parse_frame
from soyal_ar727.session import DeviceSession


def _session(*responses, **kwargs):
    """Build a session whose transport answers with the given frames."""
    transport = MagicMock()
    transport.read.side_effect = list(responses)
    return DeviceSession(transport, **kwargs), transport


def _sent(transport, index=0):
    return parse_frame(transport.write.call_args_list[index].args[0])


def _card_payload():
    payload = bytearray(20)
    payload[5:9] = b"\xb7\x11\xfb\x3e"
    payload[13] = 88
    payload[17:20] = bytes([30, 1, 15])
    return bytes(payload)


def _log_payload():
    payload = bytearray(21)
    payload[0:8] = bytes([0, 5, 4, 3, 2, 1, 2, 24])
    payload[9:11] = b"\x00\x03"
    payload[11] = 32
    payload[15:17] = b"\xb7\x11"
    payload[17] = 1
    payload[19:21] = b"\xfb\x3e"
    return bytes(payload)


def test_invalid_node_id():
    with pytest.raises(ValueError):
        DeviceSession(MagicMock(), node_id=300)


def test_get_status():
    """Status query returns the validated response."""
    session, transport = _session(build_frame(0x01, 0x18, b"\x01\x02"))
    frame = session.get_status()
    assert frame.code == 0x18
    assert frame.payload == b"\x01\x02"
    assert transport.write.call_args.args[0] == bytes.fromhex("FF 00 5A A5 00 04 01 18 E6 FF")


def test_get_status_nack():
    session, _ = _session(build_frame(0x01, NACK))
    with pytest.raises(DeviceRejectedError) as excinfo:
        session.get_status()
    assert "getting device status" in str(excinfo.value)
    assert excinfo.value.code == NACK


def test_requests_use_session_node_id():
    session, transport = _session(build_frame(0x07, 0x18), node_id=0x07)
    session.get_status()
    assert _sent(transport).node_id == 0x07


def test_get_card():
    session, transport = _session(build_frame(0x01, 0x03, _card_payload()))
    card = session.get_card(300)
    assert _sent(transport).code == Command.GET_CARD
    assert _sent(transport).payload == b"\x01\x2c\x01"
    assert card.address == 300
    assert card.uid1 == "46865"
    assert card.uid2 == "64318"
    assert card.enabled
    assert card.expiry == datetime.date(2030, 1, 15)


def test_get_card_checksum_error():
    """Fields are never decoded from a corrupt frame."""
    response = bytearray(build_frame(0x01, 0x03, _card_payload()))
    response[-2] ^= 0xFF
    session, _ = _session(bytes(response))
    with pytest.raises(ChecksumError):
        session.get_card(1)


def test_short_response():
    session, _ = _session(b"\xff\x00\x5a")
    with pytest.raises(ShortFrameError):
        session.get_status()


def test_set_card():
    session, transport = _session(build_frame(0x01, ACK))
    assert session.set_card(5, 46865, 64318) is session
    sent = _sent(transport)
    assert sent.code == Command.SET_CARD
    assert sent.payload[15] == 88


def test_set_card_legacy_enabled_status():
    session, transport = _session(build_frame(0x01, ACK), enabled_status=STATUS_ENABLED_LEGACY)
    session.set_card(5, 1, 2)
    assert _sent(transport).payload[15] == 64


def test_set_card_nack():
    session, _ = _session(build_frame(0x01, NACK))
    with pytest.raises(DeviceRejectedError) as excinfo:
        session.set_card(5, 1, 2)
    assert excinfo.value.operation == "setting card"


def test_disable_card():
    session, transport = _session(build_frame(0x01, ACK))
    session.disable_card(9)
    payload = _sent(transport).payload
    assert payload[1:3] == b"\x00\x09"
    assert payload[7:11] == b"\xff\xff\xff\xff"
    assert payload[15] == 0


def test_reset_cards_default_end():
    session, transport = _session(build_frame(0x01, ACK))
    session.reset_cards(10)
    assert _sent(transport).payload == bytes([0x00, 0x0A, 0x00, 0x0B])


def test_reset_cards_nack():
    session, _ = _session(build_frame(0x01, NACK))
    with pytest.raises(DeviceRejectedError, match="resetting cards"):
        session.reset_cards(0, 100)


def test_reboot():
    session, transport = _session(build_frame(0x01, ACK))
    assert session.reboot().is_ack
    assert _sent(transport).payload == b"\xfd"


def test_get_time():
    clock = bytes([0x00, 30, 45, 13, 1, 17, 3, 24])
    session, _ = _session(build_frame(0x01, 0x03, clock))
    assert session.get_time() == datetime.datetime(2024, 3, 17, 13, 45, 30)


def test_get_time_nack():
    session, _ = _session(build_frame(0x01, NACK))
    with pytest.raises(DeviceRejectedError):
        session.get_time()


def test_set_time_naive_string():
    """Naive timestamps are sent as-is."""
    session, transport = _session(build_frame(0x01, ACK))
    session.set_time("2024-03-17T13:45:30")
    assert _sent(transport).payload == bytes([30, 45, 13, 1, 17, 3, 24])


def test_set_time_converts_to_session_timezone():
    """Aware timestamps are converted to the session timezone first."""
    session, transport = _session(build_frame(0x01, ACK), timezone="Asia/Taipei")
    session.set_time(datetime.datetime(2024, 3, 17, 5, 45, 30, tzinfo=datetime.timezone.utc))
    assert _sent(transport).payload == bytes([30, 45, 13, 1, 17, 3, 24])


def test_set_time_defaults_to_now():
    session, transport = _session(build_frame(0x01, ACK))
    session.set_time()
    sent = _sent(transport)
    assert sent.code == Command.SET_TIME
    assert len(sent.payload) == 7


def test_set_time_nack():
    session, _ = _session(build_frame(0x01, NACK))
    with pytest.raises(DeviceRejectedError, match="setting device time"):
        session.set_time("2024-03-17T13:45:30")


def test_get_oldest_log():
    session, _ = _session(build_frame(0x01, 0x0B, _log_payload()))
    record = session.get_oldest_log()
    assert record.time == datetime.datetime(2024, 2, 1, 3, 4, 5)
    assert record.address == "00003"
    assert record.type == 2
    assert record.door == 1


def test_get_oldest_log_empty():
    """ACK means no more log entries, not an error."""
    session, _ = _session(build_frame(0x01, ACK))
    assert session.get_oldest_log() is None


def test_delete_oldest_log():
    session, transport = _session(build_frame(0x01, ACK))
    assert session.delete_oldest_log() is session
    assert _sent(transport).code == Command.DELETE_OLDEST_LOG


def test_delete_oldest_log_nack():
    session, _ = _session(build_frame(0x01, NACK))
    with pytest.raises(DeviceRejectedError, match="deleting event log"):
        session.delete_oldest_log()


def test_transport_error_propagates():
    transport = MagicMock()
    transport.read.side_effect = TransportError("Read failed")
    session = DeviceSession(transport)
    with pytest.raises(TransportError):
        session.get_status()


def test_context_manager_closes_transport():
    transport = MagicMock()
    with DeviceSession(transport):
        pass
    transport.close.assert_called_once()


def test_open_invalid_node_id_leaves_no_socket():
    """A rejected node id is caught before any socket is opened."""
    sock = MagicMock()
    with patch("socket.create_connection", return_value=sock) as create:
        with pytest.raises(ValueError):
            DeviceSession.open("10.0.0.5", node_id=300)
    create.assert_not_called()


def test_open_unknown_timezone_leaves_no_socket():
    sock = MagicMock()
    with patch("socket.create_connection", return_value=sock) as create:
        with pytest.raises(ValueError):
            DeviceSession.open("10.0.0.5", timezone="Not/AZone")
    create.assert_not_called()


def test_open_connects():
    sock = MagicMock()
    with patch("socket.create_connection", return_value=sock):
        session = DeviceSession.open("10.0.0.5", node_id=2)
    assert session.node_id == 2
    assert session.transport.connected
    session.close()
    sock.close.assert_called_once()


def test_unknown_timezone_is_value_error():
    with pytest.raises(ValueError, match="Unknown timezone"):
        DeviceSession(MagicMock(), timezone="Not/AZone")


def test_enabled_status_range():
    """An enabled status of 0 would write disabled cards."""
    with pytest.raises(ValueError):
        DeviceSession(MagicMock(), enabled_status=0)
    with pytest.raises(ValueError):
        DeviceSession(MagicMock(), enabled_status=256)
