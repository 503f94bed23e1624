"""Transport layer: byte streams to the terminal."""

from .tcp_connection import TCPConnection
