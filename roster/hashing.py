"""Key hashing into cluster hash slots."""

from __future__ import annotations

import binascii

HASH_SLOT_MAX = 16384


def crc_hash(data: bytes | bytearray | memoryview | str) -> int:
    """Return the hash slot of ``data``: CRC-16/XMODEM modulo ``HASH_SLOT_MAX``."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return binascii.crc_hqx(bytes(data), 0) % HASH_SLOT_MAX