"""Protocol layer: frame codec, command builders, and field extraction."""

from .framing import build_frame, check_frame, parse_frame, FrameKind, ResponseFrame
from .commands import Command, build_command
