"""Card record model."""

from __future__ import annotations

import datetime
from dataclasses import dataclass


@dataclass
class CardRecord:
    """A card slot as stored on the terminal.

    UIDs are the two 5-digit halves printed on the card, e.g. ``46865`` and
    ``64318``.
    """

    address: int
    uid1: str
    uid2: str
    enabled: bool
    expiry: datetime.date | None = None

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "uid1": self.uid1,
            "uid2": self.uid2,
            "status": self.enabled,
            "expired": self.expiry.isoformat() if self.expiry else None,
        }
