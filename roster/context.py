"""State available to commands for the whole life of a connection."""

from __future__ import annotations

import time

from roster.storage import StorageSegment
from roster.supervisor import MetadataConnection, Supervisor


class Context:
    """The storage, supervisor and connection metadata a command runs with."""

    def __init__(
        self,
        storage: StorageSegment,
        supervisor: Supervisor,
        connection: MetadataConnection,
    ) -> None:
        self.storage = storage
        self.supervisor = supervisor
        self.connection = connection

    def __repr__(self) -> str:
        return f"Context(connection={self.connection.id})"

    def is_in_slot(self, hash_value: int) -> bool:
        return self.storage.is_in_slot(hash_value)

    def now(self) -> float:
        """Return the current monotonic time, as used for key expiry."""
        return time.monotonic()