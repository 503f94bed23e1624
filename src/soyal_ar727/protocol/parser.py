"""Field extraction from validated response frames.

Field offsets are counted from the response code byte, so the same table
serves extended and standard frames. For an extended frame the code sits at
index 7 and, e.g., the first card UID at indexes 13-14. Standard frames
thus read every field four bytes earlier than an extended frame would;
the shift follows the shorter header and is intentional.
"""

from __future__ import annotations

import datetime

from ..exceptions import MalformedDateError, ShortFrameError
from ..models.card import CardRecord
from ..models.log import LogRecord
from .framing import FrameKind, ResponseFrame

BASE_YEAR = 2000
LOG_TYPE_STEP = 32

# Card record (get card)
CARD_UID1 = 6
CARD_UID2 = 8
CARD_STATUS = 14
CARD_EXPIRY_YEAR = 18
CARD_EXPIRY_MONTH = 19
CARD_EXPIRY_DAY = 20

# Clock fields (get time and event log)
TIME_SECOND = 2
TIME_MINUTE = 3
TIME_HOUR = 4
TIME_WEEKDAY = 5
TIME_DAY = 6
TIME_MONTH = 7
TIME_YEAR = 8

# Event log (get oldest log)
LOG_ADDRESS = 10
LOG_TYPE = 12
LOG_UID1 = 16
LOG_DOOR = 18
LOG_UID2 = 20


def parse_uid(high: int, low: int) -> str:
    """Render a UID byte pair as its 5-digit decimal card number.

    The bytes are written out as four hex digits and that string is read
    back as a base-16 number, e.g. ``(0xB7, 0x11)`` gives ``"46865"``.
    """
    hex_string = f"{high:02x}{low:02x}"
    return f"{int(hex_string, 16):05d}"


def card_enabled(status: int) -> bool:
    return status > 0


def log_type(raw: int) -> int:
    """Map the log type byte to F1..F4 (1-4); thresholds are 0, 32, 64, 96."""
    if raw > 0:
        return raw // LOG_TYPE_STEP + 1
    return 1


def function_code(data: bytes) -> int:
    """Return the function/response code of a raw frame."""
    return data[FrameKind.detect(data).code_offset]


def decode_date(year: int, month: int, day: int) -> datetime.date | None:
    """Decode a year/month/day triple offset from 2000.

    Returns:
        The date, or ``None`` if the components do not form a valid date.
    """
    try:
        return datetime.date(BASE_YEAR + year % 100, month % 100, day % 100)
    except ValueError:
        return None


def decode_datetime(
    second: int, minute: int, hour: int, day: int, month: int, year: int
) -> datetime.datetime:
    """Decode a device timestamp.

    Raises:
        MalformedDateError: If any component is out of range.
    """
    try:
        return datetime.datetime(
            BASE_YEAR + year % 100,
            month % 100,
            day % 100,
            hour % 100,
            minute % 100,
            second % 100,
        )
    except ValueError as e:
        raise MalformedDateError(f"Invalid time data received from device: {e}") from e


def _fields(frame: ResponseFrame, last: int, what: str) -> tuple[bytes, int]:
    """Return the raw bytes and code offset, checking ``last`` is in range."""
    base = frame.kind.code_offset
    # the two checksum bytes follow the last field
    if len(frame.raw) < base + last + 3:
        raise ShortFrameError(
            f"{what} response too short: {len(frame.raw)} bytes"
        )
    return frame.raw, base


def _timestamp(raw: bytes, base: int) -> datetime.datetime:
    return decode_datetime(
        raw[base + TIME_SECOND],
        raw[base + TIME_MINUTE],
        raw[base + TIME_HOUR],
        raw[base + TIME_DAY],
        raw[base + TIME_MONTH],
        raw[base + TIME_YEAR],
    )


def parse_card(frame: ResponseFrame, address: int) -> CardRecord:
    """Decode a get-card response.

    An impossible expiry date (month 0, day 0, month 13, ...) yields a
    record without expiry rather than an error.
    """
    raw, base = _fields(frame, CARD_EXPIRY_DAY, "Card")
    return CardRecord(
        address=address,
        uid1=parse_uid(raw[base + CARD_UID1], raw[base + CARD_UID1 + 1]),
        uid2=parse_uid(raw[base + CARD_UID2], raw[base + CARD_UID2 + 1]),
        enabled=card_enabled(raw[base + CARD_STATUS]),
        expiry=decode_date(
            raw[base + CARD_EXPIRY_YEAR],
            raw[base + CARD_EXPIRY_MONTH],
            raw[base + CARD_EXPIRY_DAY],
        ),
    )


def parse_time(frame: ResponseFrame) -> datetime.datetime:
    """Decode a get-time response.

    Raises:
        MalformedDateError: If the device clock holds an impossible value.
    """
    raw, base = _fields(frame, TIME_YEAR, "Time")
    return _timestamp(raw, base)


def parse_log(frame: ResponseFrame) -> LogRecord | None:
    """Decode a get-oldest-log response.

    Returns:
        The log record, or ``None`` when the device answers ACK because the
        log memory is empty.
    """
    if frame.is_ack:
        return None

    raw, base = _fields(frame, LOG_UID2 + 1, "Event log")
    return LogRecord(
        time=_timestamp(raw, base),
        func_code=function_code(raw),
        address=parse_uid(raw[base + LOG_ADDRESS], raw[base + LOG_ADDRESS + 1]),
        uid1=parse_uid(raw[base + LOG_UID1], raw[base + LOG_UID1 + 1]),
        uid2=parse_uid(raw[base + LOG_UID2], raw[base + LOG_UID2 + 1]),
        door=raw[base + LOG_DOOR],
        type=log_type(raw[base + LOG_TYPE]),
    )
