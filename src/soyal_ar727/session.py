"""Request/response session with one Soyal AR-727 terminal.

Each operation builds a frame, writes it, reads one response, validates the
checksums and decodes the fields it needs. One session owns its transport;
the protocol carries no request ids, so calls must not overlap.
"""

from __future__ import annotations

import datetime
import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import DeviceRejectedError
from .models.card import CardRecord
from .models.log import LogRecord
from .protocol.commands import (
    STATUS_DISABLED,
    STATUS_ENABLED,
    MAX_UID,
    build_delete_oldest_log,
    build_get_card,
    build_get_oldest_log,
    build_get_status,
    build_get_time,
    build_reboot,
    build_reset_cards,
    build_set_card,
    build_set_time,
)
from .protocol.framing import ResponseFrame, parse_frame
from .protocol.parser import parse_card, parse_log, parse_time
from .transport.tcp_connection import DEFAULT_PORT, DEFAULT_TIMEOUT, TCPConnection

logger = logging.getLogger(__name__)

DEFAULT_NODE_ID = 0x01
DEFAULT_TIMEZONE = "Asia/Taipei"


class DeviceSession:
    """Drives a single terminal over a byte-stream transport.

    The transport needs ``write(bytes)`` and ``read() -> bytes``; ``close()``
    is called by :meth:`close` when present.

    Usage::

        with DeviceSession.open("192.168.1.127") as session:
            card = session.get_card(12)
    """

    def __init__(
        self,
        transport,
        node_id: int = DEFAULT_NODE_ID,
        enabled_status: int = STATUS_ENABLED,
        timezone: str = DEFAULT_TIMEZONE,
    ) -> None:
        if not 0 <= node_id <= 0xFF:
            raise ValueError(f"Node ID must be 0-255, got {node_id}")
        if not 1 <= enabled_status <= 0xFF:
            raise ValueError(f"Enabled status must be 1-255, got {enabled_status}")
        try:
            self._tz = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {timezone}") from e
        self._transport = transport
        self._node_id = node_id
        self._enabled_status = enabled_status

    @classmethod
    def open(
        cls,
        host: str,
        port: int = DEFAULT_PORT,
        node_id: int = DEFAULT_NODE_ID,
        timeout: float = DEFAULT_TIMEOUT,
        **kwargs,
    ) -> DeviceSession:
        """Connect over TCP and return a session bound to ``node_id``."""
        conn = TCPConnection(host, port=port, timeout=timeout)
        session = cls(conn, node_id=node_id, **kwargs)
        conn.open()
        return session

    @property
    def node_id(self) -> int:
        return self._node_id

    @property
    def transport(self):
        return self._transport

    def close(self) -> None:
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> DeviceSession:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ─── EXCHANGE ────────────────────────────────────────────────────

    def _exchange(self, frame: bytes) -> ResponseFrame:
        self._transport.write(frame)
        return parse_frame(self._transport.read())

    def _exchange_checked(self, frame: bytes, operation: str) -> ResponseFrame:
        """Exchange a frame and raise if the terminal answers NACK."""
        response = self._exchange(frame)
        if response.is_nack:
            logger.warning("Node %d rejected request: %s", self._node_id, operation)
            raise DeviceRejectedError(operation, response.code)
        return response

    # ─── STATUS ──────────────────────────────────────────────────────

    def get_status(self) -> ResponseFrame:
        """Query the controller status; the raw response is returned."""
        return self._exchange_checked(
            build_get_status(self._node_id), "getting device status"
        )

    def reboot(self) -> ResponseFrame:
        return self._exchange(build_reboot(self._node_id))

    # ─── CARDS ───────────────────────────────────────────────────────

    def get_card(self, address: int) -> CardRecord:
        """Read the card stored at ``address`` (0-16383)."""
        response = self._exchange(build_get_card(self._node_id, address))
        return parse_card(response, address)

    def set_card(
        self,
        address: int,
        uid1: int,
        uid2: int,
        disable: bool = False,
        expiry: datetime.date | None = None,
    ) -> DeviceSession:
        """Write a card record.

        Args:
            address: Card address 0-16383.
            uid1: First UID half, e.g. 46865.
            uid2: Second UID half, e.g. 64318.
            disable: Store the card disabled.
            expiry: Last valid day (default 2099-12-31).

        Raises:
            DeviceRejectedError: If the terminal answers NACK.
        """
        status = STATUS_DISABLED if disable else self._enabled_status
        frame = build_set_card(
            self._node_id, address, uid1, uid2, status=status, expiry=expiry
        )
        self._exchange_checked(frame, "setting card")
        return self

    def disable_card(self, address: int) -> DeviceSession:
        return self.set_card(address, MAX_UID, MAX_UID, disable=True)

    def reset_cards(self, start: int = 0, end: int | None = None) -> ResponseFrame:
        """Clear the card range ``start``..``end`` (default ``start + 1``)."""
        if end is None:
            end = start + 1
        return self._exchange_checked(
            build_reset_cards(self._node_id, start, end), "resetting cards"
        )

    # ─── CLOCK ───────────────────────────────────────────────────────

    def get_time(self) -> datetime.datetime:
        """Read the terminal clock.

        Raises:
            MalformedDateError: If the clock holds an impossible value.
        """
        response = self._exchange_checked(
            build_get_time(self._node_id), "getting device time"
        )
        return parse_time(response)

    def set_time(self, when: datetime.datetime | str | None = None) -> ResponseFrame:
        """Set the terminal clock.

        Args:
            when: A datetime or ISO 8601 string. Naive values are taken as
                local time in the session timezone, aware values are
                converted to it. Defaults to now.
        """
        if when is None:
            when = datetime.datetime.now(self._tz)
        elif isinstance(when, str):
            when = datetime.datetime.fromisoformat(when)
        if when.tzinfo is not None:
            when = when.astimezone(self._tz)

        return self._exchange_checked(
            build_set_time(self._node_id, when), "setting device time"
        )

    # ─── EVENT LOG ───────────────────────────────────────────────────

    def get_oldest_log(self) -> LogRecord | None:
        """Read the oldest event in log memory, or ``None`` if it is empty."""
        response = self._exchange(build_get_oldest_log(self._node_id))
        return parse_log(response)

    def delete_oldest_log(self) -> DeviceSession:
        self._exchange_checked(
            build_delete_oldest_log(self._node_id), "deleting event log"
        )
        return self
