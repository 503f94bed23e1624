"""Client for Soyal AR-727 access-control terminals over TCP."""

from importlib.metadata import PackageNotFoundError, version

from .exceptions import (
    SoyalError,
    TransportError,
    FrameError,
    ShortFrameError,
    ChecksumError,
    DeviceRejectedError,
    MalformedDateError,
)
from .models import CardRecord, LogRecord
from .session import DeviceSession
from .transport import TCPConnection

try:
    __version__ = version("soyal-ar727-mcp")
except PackageNotFoundError:
    __version__ = "0.0.0"
