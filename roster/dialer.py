"""Communication between the shards of a server."""

from __future__ import annotations

import queue
from dataclasses import dataclass, field
from typing import Any

from roster.storage import Slot, Storage


@dataclass(frozen=True)
class Cluster:
    """The servers a query may be distributed to; a single server for now."""


class Mesh:
    """A set of mailboxes through which shards pass messages to each other."""

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError("a mesh needs at least one peer")
        self.size = size
        self._mailboxes: list[queue.Queue] = [queue.Queue() for _ in range(size)]

    def __repr__(self) -> str:
        return f"Mesh(size={self.size})"

    def _check_peer(self, peer: int) -> None:
        if not 0 <= peer < self.size:
            raise ValueError(f"peer {peer} is outside a mesh of {self.size}")

    def _mailbox(self, peer: int) -> queue.Queue:
        self._check_peer(peer)
        return self._mailboxes[peer]

    def join_with(self, peer: int) -> "Shard":
        """Return the shard of the mesh for ``peer``."""
        self._check_peer(peer)
        return Shard(self, peer)


@dataclass(frozen=True)
class Shard:
    """One member of a mesh: it can send to any peer and receive its own mail."""

    mesh: Mesh
    index: int

    def send_to(self, message: Any, target: int) -> None:
        self.mesh._mailbox(target).put(message)

    def receive(self, timeout: float | None = None) -> Any:
        """Return the next message for this shard; raise TimeoutError if none comes."""
        try:
            return self.mesh._mailbox(self.index).get(timeout=timeout)
        except queue.Empty:
            raise TimeoutError("no message received") from None


@dataclass
class Dialer:
    """What one shard knows about where slots live."""

    shard: Shard
    cluster: Cluster
    local_slot: Slot
    global_slot: Slot
    inner_slots: list[Slot] = field(default_factory=list)


class RootDialer:
    """Hands each shard a dialer for its part of the storage."""

    def __init__(self, mesh: Mesh, storage: Storage) -> None:
        self.mesh = mesh
        self.cluster = Cluster()
        self.global_slot = storage.global_slot
        self.inner_slots = storage.slots()

    def __repr__(self) -> str:
        return f"RootDialer(mesh={self.mesh!r}, global_slot={self.global_slot!r})"

    def part(self, part: int) -> Dialer:
        """Return the dialer for ``part``; its local slot is taken modulo the parts."""
        local_slot = self.inner_slots[part % len(self.inner_slots)]
        return Dialer(
            shard=self.mesh.join_with(part),
            cluster=self.cluster,
            local_slot=local_slot,
            global_slot=self.global_slot,
            inner_slots=list(self.inner_slots),
        )