"""Command catalog and per-operation frame builders.

Every builder returns a complete extended frame for a given node id.
Multi-byte values (card address, UIDs) are sent high byte first.
"""

from __future__ import annotations

import datetime
from enum import IntEnum

from .framing import build_frame

MAX_CARD_ADDRESS = 16383
MAX_UID = 0xFFFF

# Card mode byte written by set-card. Firmware revisions disagree on the
# value that means "enabled"; 0b01011000 is current, 0b01000000 older.
STATUS_ENABLED = 88
STATUS_ENABLED_LEGACY = 64
STATUS_DISABLED = 0

DEFAULT_EXPIRY = datetime.date(2099, 12, 31)
REBOOT_SUBCODE = 0xFD
CARD_RECORD_COUNT = 0x01


class Command(IntEnum):
    """Command codes understood by the terminal."""

    SET_TIME = 0x23
    GET_TIME = 0x24
    GET_OLDEST_LOG = 0x25
    DELETE_OLDEST_LOG = 0x37
    GET_STATUS = 0x18
    SET_CARD = 0x84
    RESET_CARDS = 0x85
    GET_CARD = 0x87
    REBOOT = 0xA6


def _split16(value: int) -> list[int]:
    return [(value >> 8) & 0xFF, value & 0xFF]


def _check_address(address: int) -> None:
    if not 0 <= address <= MAX_CARD_ADDRESS:
        raise ValueError(f"Card address must be 0-{MAX_CARD_ADDRESS}, got {address}")


def _check_uid(uid: int) -> None:
    if not 0 <= uid <= MAX_UID:
        raise ValueError(f"UID must be 0-{MAX_UID}, got {uid}")


def build_command(node_id: int, command: Command, payload: bytes = b"") -> bytes:
    """Build a frame for any catalog command."""
    return build_frame(node_id, command.value, payload)


def build_get_status(node_id: int) -> bytes:
    return build_command(node_id, Command.GET_STATUS)


def build_get_card(node_id: int, address: int) -> bytes:
    """Build a card read for a single record.

    Args:
        address: Card address 0-16383.
    """
    _check_address(address)
    return build_command(
        node_id, Command.GET_CARD, bytes(_split16(address) + [CARD_RECORD_COUNT])
    )


def build_set_card(
    node_id: int,
    address: int,
    uid1: int,
    uid2: int,
    status: int = STATUS_ENABLED,
    expiry: datetime.date | None = None,
) -> bytes:
    """Build a card write for a single record.

    The PIN is zeroed, the zone cleared, both group bytes set to 0xFF and
    the access level left at 0.

    Args:
        address: Card address 0-16383.
        uid1: First UID half (0-65535).
        uid2: Second UID half (0-65535).
        status: Card mode byte; ``STATUS_DISABLED`` turns the card off.
        expiry: Last valid day. Defaults to 2099-12-31.
    """
    _check_address(address)
    _check_uid(uid1)
    _check_uid(uid2)
    if not 0 <= status <= 0xFF:
        raise ValueError(f"Status must be 0-255, got {status}")
    expiry = expiry or DEFAULT_EXPIRY

    payload = (
        [CARD_RECORD_COUNT]
        + _split16(address)
        + [0, 0, 0, 0]
        + _split16(uid1)
        + _split16(uid2)
        + [0, 0, 0, 0]  # pin
        + [status, 0, 0xFF, 0xFF]  # mode, zone, group1, group2
        + [expiry.year % 100, expiry.month, expiry.day]
        + [0]  # level
        + [0, 0, 0, 0]
    )
    return build_command(node_id, Command.SET_CARD, bytes(payload))


def build_reset_cards(node_id: int, start: int, end: int) -> bytes:
    """Build a reset of the card range ``start``..``end``."""
    _check_address(start)
    _check_address(end)
    return build_command(
        node_id, Command.RESET_CARDS, bytes(_split16(start) + _split16(end))
    )


def build_reboot(node_id: int) -> bytes:
    return build_command(node_id, Command.REBOOT, bytes([REBOOT_SUBCODE]))


def build_get_time(node_id: int) -> bytes:
    return build_command(node_id, Command.GET_TIME)


def build_set_time(node_id: int, when: datetime.datetime) -> bytes:
    """Build a clock write.

    The weekday byte counts Sunday as 1 through Saturday as 7.
    """
    weekday = when.isoweekday() % 7 + 1
    payload = [
        when.second,
        when.minute,
        when.hour,
        weekday,
        when.day,
        when.month,
        when.year % 100,
    ]
    return build_command(node_id, Command.SET_TIME, bytes(payload))


def build_get_oldest_log(node_id: int) -> bytes:
    return build_command(node_id, Command.GET_OLDEST_LOG)


def build_delete_oldest_log(node_id: int) -> bytes:
    return build_command(node_id, Command.DELETE_OLDEST_LOG)
