"""Event-log record model."""

from __future__ import annotations

import datetime
from dataclasses import dataclass

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class LogRecord:
    """The oldest event held in the terminal's log memory."""

    time: datetime.datetime
    func_code: int
    address: str
    uid1: str
    uid2: str
    door: int
    type: int  # F1..F4 -> 1..4

    def to_dict(self) -> dict:
        return {
            "time": self.time.strftime(TIMESTAMP_FORMAT),
            "func_code": self.func_code,
            "address": self.address,
            "uid1": self.uid1,
            "uid2": self.uid2,
            "door": self.door,
            "type": self.type,
        }
