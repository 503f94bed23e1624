"""MCP server entry point for Soyal AR-727 access-control terminals.

Exposes the card, clock and event-log operations of one terminal as tools
via the Model Context Protocol using stdio transport.
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import get_settings
from .exceptions import SoyalError
from .models.log import TIMESTAMP_FORMAT
from .protocol.framing import ResponseFrame
from .session import DeviceSession

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "soyal-ar727",
    instructions="MCP server for Soyal AR-727 access-control card readers",
)

# Global session state
_session: DeviceSession | None = None


def _get_session() -> DeviceSession:
    """Get the active session, raising if not connected."""
    if _session is None:
        raise RuntimeError(
            "Not connected to device. Use the 'connect' tool first."
        )
    return _session


def _frame_dict(frame: ResponseFrame) -> dict[str, Any]:
    return {
        "code": frame.code,
        "payload": frame.payload.hex(" "),
    }


def _call(operation: str, fn) -> dict[str, Any]:
    """Run a session operation, reporting failures as an error dict."""
    try:
        return fn()
    except (SoyalError, ValueError, RuntimeError) as e:
        logger.warning("%s failed: %s", operation, e)
        return {"error": str(e)}


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    host: str | None = None,
    port: int | None = None,
    node_id: int | None = None,
) -> dict[str, Any]:
    """Open a TCP connection to the terminal.

    Omitted arguments fall back to the SOYAL_* environment settings.

    Args:
        host: Terminal IP address or hostname.
        port: TCP port (default 1621).
        node_id: Terminal node id on the line (0-255).
    """
    global _session
    if _session is not None:
        return {"connected": True, "message": "Already connected"}

    def _open() -> dict[str, Any]:
        global _session
        settings = get_settings()
        _session = DeviceSession.open(
            host or settings.host,
            port=port or settings.port,
            node_id=settings.node_id if node_id is None else node_id,
            timeout=settings.timeout,
            enabled_status=settings.enabled_status,
            timezone=settings.timezone,
        )
        info = _session.transport.info
        return {
            "connected": True,
            "host": info.host,
            "port": info.port,
            "node_id": _session.node_id,
        }

    return _call("connect", _open)


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the connection to the terminal."""
    global _session
    if _session is None:
        return {"disconnected": True}
    _session.close()
    _session = None
    return {"disconnected": True}


@mcp.tool()
def get_status() -> dict[str, Any]:
    """Query the controller status (command 0x18) and return the raw payload."""
    return _call("get_status", lambda: _frame_dict(_get_session().get_status()))


@mcp.tool()
def reboot() -> dict[str, Any]:
    """Reboot the terminal."""
    return _call("reboot", lambda: _frame_dict(_get_session().reboot()))


# ─── CARD TOOLS ───────────────────────────────────────────────────────

@mcp.tool()
def get_card(address: int) -> dict[str, Any]:
    """Read the card stored at an address.

    Args:
        address: Card address (0-16383).
    """
    return _call("get_card", lambda: _get_session().get_card(address).to_dict())


@mcp.tool()
def set_card(
    address: int,
    uid1: int,
    uid2: int,
    disable: bool = False,
    expiry: str | None = None,
) -> dict[str, Any]:
    """Write a card record.

    Args:
        address: Card address (0-16383).
        uid1: First 5-digit UID half printed on the card.
        uid2: Second 5-digit UID half printed on the card.
        disable: Store the card disabled.
        expiry: Last valid day as YYYY-MM-DD (default 2099-12-31).
    """
    def _set() -> dict[str, Any]:
        day = datetime.date.fromisoformat(expiry) if expiry else None
        _get_session().set_card(address, uid1, uid2, disable=disable, expiry=day)
        return {"address": address, "written": True}

    return _call("set_card", _set)


@mcp.tool()
def disable_card(address: int) -> dict[str, Any]:
    """Disable the card at an address by blanking its UIDs.

    Args:
        address: Card address (0-16383).
    """
    def _disable() -> dict[str, Any]:
        _get_session().disable_card(address)
        return {"address": address, "disabled": True}

    return _call("disable_card", _disable)


@mcp.tool()
def reset_cards(start: int = 0, end: int | None = None) -> dict[str, Any]:
    """Clear a range of card addresses.

    Args:
        start: First address.
        end: Last address (default start + 1).
    """
    return _call("reset_cards", lambda: _frame_dict(_get_session().reset_cards(start, end)))


# ─── CLOCK TOOLS ──────────────────────────────────────────────────────

@mcp.tool()
def get_time() -> dict[str, Any]:
    """Read the terminal clock."""
    return _call(
        "get_time",
        lambda: {"time": _get_session().get_time().strftime(TIMESTAMP_FORMAT)},
    )


@mcp.tool()
def set_time(time: str | None = None) -> dict[str, Any]:
    """Set the terminal clock.

    Args:
        time: ISO 8601 timestamp; defaults to now in the configured timezone.
    """
    return _call("set_time", lambda: _frame_dict(_get_session().set_time(time)))


# ─── EVENT LOG TOOLS ──────────────────────────────────────────────────

@mcp.tool()
def get_oldest_log() -> dict[str, Any]:
    """Read the oldest event in the terminal's log memory."""
    def _read() -> dict[str, Any]:
        record = _get_session().get_oldest_log()
        if record is None:
            return {"empty": True}
        return record.to_dict()

    return _call("get_oldest_log", _read)


@mcp.tool()
def delete_oldest_log() -> dict[str, Any]:
    """Delete the oldest event from the terminal's log memory."""
    def _delete() -> dict[str, Any]:
        _get_session().delete_oldest_log()
        return {"deleted": True}

    return _call("delete_oldest_log", _delete)


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("soyal://device/info")
def resource_device_info() -> str:
    """Connection state and target terminal."""
    if _session is None:
        return json.dumps({"connected": False})

    info = _session.transport.info
    return json.dumps({
        "connected": True,
        "host": info.host,
        "port": info.port,
        "node_id": _session.node_id,
    })


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=get_settings().log_level.upper())
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
