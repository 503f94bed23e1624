"""XOR/SUM checksum pair used by the Soyal extended protocol.

The XOR byte is seeded with 0xFF and folds in every checked byte. The SUM
byte adds every checked byte and then the XOR byte itself, keeping the low
byte.
"""

from __future__ import annotations

from typing import Iterable

XOR_SEED = 0xFF


def xor_sum(data: Iterable[int]) -> tuple[int, int]:
    """Return the ``(xor, sum)`` checksum pair for the checked bytes.

    Args:
        data: Bytes from the node id through the last payload byte.
    """
    xor = XOR_SEED
    total = 0
    for byte in data:
        xor ^= byte
        total += byte
    xor %= 256
    total = (total + xor) % 256
    return xor, total
