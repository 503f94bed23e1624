"""TCP connection to a Soyal AR-727 terminal.

The terminal (or its serial-to-Ethernet bridge) listens on port 1621 and
answers each request with one frame, so a single ``recv`` is treated as a
complete response.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass

from ..exceptions import TransportError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 1621
DEFAULT_TIMEOUT = 5.0
READ_BUFFER_SIZE = 65535


@dataclass
class ConnectionInfo:
    """Where the connection points."""

    host: str = ""
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT


class TCPConnection:
    """Manages the TCP stream to the terminal.

    Usage::

        conn = TCPConnection("192.168.1.127")
        conn.open()
        conn.write(frame_bytes)
        response = conn.read()
        conn.close()
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._info = ConnectionInfo(host=host, port=port, timeout=timeout)
        self._sock: socket.socket | None = None

    @property
    def connected(self) -> bool:
        return self._sock is not None

    @property
    def info(self) -> ConnectionInfo:
        return self._info

    def open(self) -> ConnectionInfo:
        """Connect to the terminal.

        Raises:
            TransportError: If the connection cannot be established.
        """
        if self._sock is not None:
            return self._info

        try:
            self._sock = socket.create_connection(
                (self._info.host, self._info.port), timeout=self._info.timeout
            )
        except OSError as e:
            raise TransportError(
                f"Could not connect to {self._info.host}:{self._info.port}: {e}"
            ) from e

        logger.info("Connected to %s:%d", self._info.host, self._info.port)
        return self._info

    def close(self) -> None:
        """Close the socket."""
        if self._sock is None:
            return

        try:
            self._sock.close()
        except OSError as e:
            logger.warning("Error closing socket: %s", e)
        finally:
            self._sock = None
            logger.info("Disconnected")

    def write(self, data: bytes) -> int:
        """Send a complete frame.

        Returns:
            Number of bytes written.

        Raises:
            TransportError: If not connected or the send fails.
        """
        sock = self._require_socket()
        logger.debug("TX %s", data.hex(" "))
        try:
            sock.sendall(data)
        except OSError as e:
            raise TransportError(f"Write failed: {e}") from e
        return len(data)

    def read(self) -> bytes:
        """Read one response frame.

        Raises:
            TransportError: If not connected, the read times out, or the
                peer returns no data.
        """
        sock = self._require_socket()
        try:
            data = sock.recv(READ_BUFFER_SIZE)
        except OSError as e:
            raise TransportError(f"Read failed: {e}") from e

        if not data:
            raise TransportError("Node error: can not get node data.")
        logger.debug("RX %s", data.hex(" "))
        return data

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise TransportError("Not connected to device")
        return self._sock
