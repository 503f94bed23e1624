"""Frame builder and validator for the Soyal AR-727 extended protocol.

Extended frame layout::

    +-------------+---------+---------+---------+------------------+-----+-----+
    | Header      | Length  | Node ID | Command |     Payload      | XOR | SUM |
    | FF 00 5A A5 | 2 bytes | 1 byte  | 1 byte  |  variable length |  1  |  1  |
    +-------------+---------+---------+---------+------------------+-----+-----+

- Length: ``4 + len(payload)``, high byte first
- XOR: 0xFF xor every byte from Node ID through the payload
- SUM: sum of the same bytes plus XOR, low byte

Responses may also arrive in the legacy standard form, which lacks the
4-byte header and length field. Only the checksum region and code offset
differ, so both kinds are validated here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..exceptions import ChecksumError, ShortFrameError
from ..utils.checksum import xor_sum

HEADER = b"\xFF\x00\x5A\xA5"
EXTENDED_MARKER = 0xFF
LENGTH_OVERHEAD = 4  # node id + command + xor + sum
CHECKSUM_INVALID = -1

# Device-level response codes
ACK = 4
NACK = 5


class FrameKind(Enum):
    """Frame variant, carrying its 0-indexed offset table.

    Values are ``(checked_start, code_offset, min_length)``.
    """

    EXTENDED = (6, 7, 8)
    STANDARD = (2, 3, 4)

    def __init__(self, checked_start: int, code_offset: int, min_length: int) -> None:
        self.checked_start = checked_start
        self.code_offset = code_offset
        self.min_length = min_length

    @classmethod
    def detect(cls, data: bytes) -> FrameKind:
        """Pick the frame kind from the first byte of a received frame."""
        if data and data[0] == EXTENDED_MARKER:
            return cls.EXTENDED
        return cls.STANDARD


@dataclass
class ResponseFrame:
    """A received frame whose checksums have been verified."""

    kind: FrameKind
    code: int
    raw: bytes

    @property
    def node_id(self) -> int:
        return self.raw[self.kind.checked_start]

    @property
    def payload(self) -> bytes:
        """Bytes between the response code and the XOR byte."""
        return self.raw[self.kind.code_offset + 1 : -2]

    @property
    def is_ack(self) -> bool:
        return self.code == ACK

    @property
    def is_nack(self) -> bool:
        return self.code == NACK

    def __repr__(self) -> str:
        return (
            f"ResponseFrame(kind={self.kind.name}, code=0x{self.code:02X}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


def _check_byte(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must be 0-255, got {value}")


def build_frame(node_id: int, command: int, payload: bytes = b"") -> bytes:
    """Build an extended frame addressed to ``node_id``.

    Args:
        node_id: Target terminal address (0-255).
        command: Single-byte command code.
        payload: Command-specific payload bytes.

    Returns:
        The complete frame, ready to write to the transport.
    """
    _check_byte("Node ID", node_id)
    _check_byte("Command", command)
    payload = bytes(payload)

    body = bytes([node_id, command]) + payload
    xor, total = xor_sum(body)
    length = (LENGTH_OVERHEAD + len(payload)).to_bytes(2, "big")
    return HEADER + length + body + bytes([xor, total])


def check_frame(data: bytes) -> int:
    """Validate the checksums of a received frame.

    Returns:
        The response code, or ``CHECKSUM_INVALID`` if XOR or SUM mismatch.

    Raises:
        ShortFrameError: If the frame is shorter than its kind allows.
    """
    data = bytes(data)
    kind = FrameKind.detect(data)
    if len(data) < kind.min_length:
        raise ShortFrameError(
            f"{kind.name.lower()} frame needs at least {kind.min_length} bytes, "
            f"got {len(data)}"
        )

    xor, total = xor_sum(data[kind.checked_start : -2])
    if data[-2] != xor or data[-1] != total:
        return CHECKSUM_INVALID
    return data[kind.code_offset]


def parse_frame(data: bytes) -> ResponseFrame:
    """Validate a received frame and wrap it for field extraction.

    Raises:
        ShortFrameError: If the frame is too short to validate.
        ChecksumError: If the XOR or SUM byte does not match.
    """
    data = bytes(data)
    code = check_frame(data)
    if code == CHECKSUM_INVALID:
        raise ChecksumError(f"Checksum mismatch in frame {data.hex(' ')}")
    return ResponseFrame(kind=FrameKind.detect(data), code=code, raw=data)
