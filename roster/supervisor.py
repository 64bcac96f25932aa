"""Registry of the client connections open on the server."""

from __future__ import annotations

import enum
import ipaddress
import itertools
import threading
from dataclasses import dataclass, field


class ConnectionKind(enum.Enum):
    NORMAL = "normal"


def _format_addr(addr: tuple) -> str:
    host, port = addr[0], addr[1]
    try:
        if isinstance(ipaddress.ip_address(host), ipaddress.IPv6Address):
            return f"[{host}]:{port}"
    except ValueError:
        pass
    return f"{host}:{port}"


@dataclass
class MetadataConnection:
    """Metadata about one client connection."""

    id: int
    addr: tuple
    laddr: tuple
    fd: int
    kind: ConnectionKind = ConnectionKind.NORMAL
    name: str | None = None
    stopped: bool = False
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def stop(self) -> None:
        """Mark the connection as stopped."""
        self.stopped = True

    def set_name(self, name: str) -> None:
        with self._lock:
            self.name = name

    def format_conn(self) -> str:
        """Describe the connection the way CLIENT LIST and CLIENT INFO show it."""
        with self._lock:
            name = self.name or ""
        return (
            f"id={self.id} addr={_format_addr(self.addr)} "
            f"laddr={_format_addr(self.laddr)} fd={self.fd} name={name}"
        )


class Supervisor:
    """Hands out connection ids and tracks the open connections."""

    def __init__(self, init_connection: int = 0) -> None:
        self._ids = itertools.count(init_connection)
        self._lock = threading.Lock()
        self._connections: dict[int, MetadataConnection] = {}

    def assign_new_connection(
        self, addr: tuple, laddr: tuple, fd: int
    ) -> MetadataConnection:
        """Register a new connection under the next id and return its metadata."""
        with self._lock:
            conn_id = next(self._ids)
            conn = MetadataConnection(id=conn_id, addr=addr, laddr=laddr, fd=fd)
            self._connections[conn_id] = conn
        return conn

    def normal_connections(self) -> list[MetadataConnection]:
        """Return the normal connections that are not stopped, oldest first."""
        with self._lock:
            conns = list(self._connections.values())
        return [
            conn
            for conn in conns
            if not conn.stopped and conn.kind is ConnectionKind.NORMAL
        ]