"""Key storage split into segments that each own a range of hash slots."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from roster.hashing import HASH_SLOT_MAX

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Slot:
    """A half-open range of hash slots, ``start <= slot < end``."""

    start: int
    end: int

    def contains(self, value: int) -> bool:
        return self.start <= value < self.end

    def __contains__(self, value: object) -> bool:
        return isinstance(value, int) and self.contains(value)

    def __len__(self) -> int:
        return max(0, self.end - self.start)

    def __iter__(self):
        return iter(range(self.start, self.end))


@dataclass
class StorageValue:
    """A stored value with an optional monotonic expiry time."""

    val: bytes
    expired: float | None = None


@dataclass(frozen=True)
class SetOptions:
    """Options of a write; ``expired`` is a monotonic deadline."""

    expired: float | None = None


def _as_bytes(data: bytes | bytearray | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


class StorageSegment:
    """A thread-safe key/value map owning one range of hash slots."""

    def __init__(self, slot: Slot) -> None:
        self.slot = slot
        self._db: dict[bytes, StorageValue] = {}
        self._lock = threading.Lock()
        self.count = 0

    def __repr__(self) -> str:
        return f"StorageSegment(slot={self.slot!r})"

    def __len__(self) -> int:
        with self._lock:
            return len(self._db)

    def is_in_slot(self, value: int) -> bool:
        return self.slot.contains(value)

    def set(
        self,
        key: bytes | str,
        value: bytes | bytearray | str,
        options: SetOptions | None = None,
    ) -> StorageValue | None:
        """Store ``value`` under ``key``; return the value it replaced, if any."""
        options = options or SetOptions()
        stored = StorageValue(val=_as_bytes(value), expired=options.expired)
        raw_key = _as_bytes(key)
        with self._lock:
            if self.count % 1_000_000 == 0:
                log.debug("storage writes: %d", self.count)
            self.count += 1
            old = self._db.get(raw_key)
            self._db[raw_key] = stored
        return old

    def get(self, key: bytes | str, now: float) -> bytes | None:
        """Return the value of ``key``, or None if missing or expired at ``now``."""
        raw_key = _as_bytes(key)
        with self._lock:
            stored = self._db.get(raw_key)
            if stored is None:
                return None
            if stored.expired is not None and now > stored.expired:
                del self._db[raw_key]
                return None
            return stored.val


class Storage:
    """A set of storage segments sharing out the hash slots of a server."""

    def __init__(self, nb_slot: int, slot: Slot) -> None:
        if nb_slot == 0:
            raise ValueError("the number of slots must not be zero")
        if nb_slot > HASH_SLOT_MAX:
            raise ValueError(f"the number of slots must not exceed {HASH_SLOT_MAX}")
        self.global_slot = slot
        part_size, remainder = divmod(HASH_SLOT_MAX, nb_slot)
        self._parts: list[tuple[Slot, StorageSegment]] = []
        for index in range(nb_slot):
            start = index * part_size
            end = (index + 1) * part_size
            if index == nb_slot - 1:
                end += remainder
            part_slot = Slot(start, end)
            self._parts.append((part_slot, StorageSegment(part_slot)))

    def __repr__(self) -> str:
        return f"Storage(global_slot={self.global_slot!r}, parts={len(self._parts)})"

    def slots(self) -> list[Slot]:
        """Return the slot of every part, indexed by part."""
        return [slot for slot, _ in self._parts]

    def part(self, part: int) -> tuple[Slot, StorageSegment]:
        """Return the slot and segment for ``part`` modulo the number of parts."""
        return self._parts[part % len(self._parts)]