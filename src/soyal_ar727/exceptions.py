"""Error taxonomy for the Soyal client.

Transport failures, malformed or corrupt frames, device rejections and
bad dates are kept apart so callers can decide what to retry, what to
report and what to ignore.
"""

from __future__ import annotations


class SoyalError(Exception):
    """Base class for every error raised by this package."""


class TransportError(SoyalError, ConnectionError):
    """Connect, read or write failure on the socket."""


class FrameError(SoyalError, ValueError):
    """A received frame cannot be trusted."""


class ShortFrameError(FrameError):
    """Fewer bytes than the frame kind or the decoded fields require."""


class ChecksumError(FrameError):
    """XOR or SUM byte mismatch."""


class DeviceRejectedError(SoyalError):
    """The terminal answered with NACK."""

    def __init__(self, operation: str, code: int) -> None:
        super().__init__(f"Error {operation} (response code {code})")
        self.operation = operation
        self.code = code


class MalformedDateError(SoyalError, ValueError):
    """Date or time components do not form a valid calendar value."""
