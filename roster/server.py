"""The server: one thread with its own event loop per core, sharing a listener."""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import os
import socket
import threading
from dataclasses import dataclass, field, replace

from roster.connection import split_connection
from roster.context import Context
from roster.dialer import Mesh, RootDialer
from roster.handler import Handler
from roster.hashing import HASH_SLOT_MAX
from roster.storage import Slot, Storage
from roster.supervisor import Supervisor

log = logging.getLogger(__name__)

LISTEN_BACKLOG = 16192
READ_BUFFER_SIZE = 4 * 1024
_STOP_WAIT = 5.0


def _available_parallelism() -> int:
    if hasattr(os, "sched_getaffinity"):
        try:
            return max(1, len(os.sched_getaffinity(0)))
        except OSError:
            pass
    return os.cpu_count() or 1


def _bind_to_cpu(cpu: int) -> None:
    if not hasattr(os, "sched_setaffinity"):
        return
    try:
        allowed = sorted(os.sched_getaffinity(0))
        os.sched_setaffinity(0, {allowed[cpu % len(allowed)]})
    except (OSError, ValueError) as exc:
        log.debug("cannot bind thread to cpu %d: %s", cpu, exc)


def _bind_listener(addr: tuple[str, int], reuse_port: bool) -> socket.socket:
    host, port = addr
    family = (
        socket.AF_INET6
        if isinstance(ipaddress.ip_address(host), ipaddress.IPv6Address)
        else socket.AF_INET
    )
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        if os.name != "nt":
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if reuse_port and hasattr(socket, "SO_REUSEPORT"):
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
        sock.bind((host, port))
        sock.listen(LISTEN_BACKLOG)
    except BaseException:
        sock.close()
        raise
    return sock


@dataclass(frozen=True)
class ServerConfig:
    """Where the server listens and how many threads serve it."""

    bind_addr: tuple[str, int]
    connections_limit: int
    threads: int | None = None
    listener: socket.socket | None = field(default=None, repr=False, compare=False)

    def initialize(self) -> "ServerHandle":
        """Bind the listener, start one server thread per core and return a handle."""
        cpus = _available_parallelism() if self.threads is None else self.threads
        if cpus < 1:
            raise ValueError("the server needs at least one thread")

        owned = self.listener is None
        listener = self.listener or _bind_listener(self.bind_addr, reuse_port=False)
        host, port = listener.getsockname()[:2]
        config = replace(self, bind_addr=(host, port), listener=listener)

        mesh = Mesh(cpus)
        storage = Storage(1, Slot(0, HASH_SLOT_MAX))
        supervisor = Supervisor(0)
        main_dialer = RootDialer(mesh, storage)

        servers = []
        threads = []
        for cpu in range(cpus):
            log.debug("starting server thread for cpu %d", cpu)
            server = ServerThread(config, main_dialer, supervisor, cpu, storage)
            servers.append(server)
            threads.append(server.start())

        return ServerHandle(
            config.bind_addr, servers, threads, listener if owned else None
        )


class ServerHandle:
    """The running server: its bound address and its threads."""

    def __init__(
        self,
        bind: tuple[str, int],
        servers: list["ServerThread"],
        threads: list[threading.Thread],
        listener: socket.socket | None = None,
    ) -> None:
        self.bind = bind
        self.threads = threads
        self._servers = servers
        self._listener = listener

    def __repr__(self) -> str:
        return f"ServerHandle(bind={self.bind!r}, threads={len(self.threads)})"

    def join(self) -> None:
        """Wait for every server thread to finish."""
        for thread in self.threads:
            thread.join()

    def stop(self) -> None:
        """Stop every server thread, wait for them and release the listener."""
        for server in self._servers:
            server._request_stop()
        self.join()
        if self._listener is not None:
            self._listener.close()
            self._listener = None


class ServerThread:
    """Serves connections on one thread with its own event loop."""

    def __init__(
        self,
        config: ServerConfig,
        dialer: RootDialer,
        supervisor: Supervisor,
        cpu: int,
        storage: Storage,
    ) -> None:
        self.config = config
        self.cpu = cpu
        self.supervisor = supervisor
        _, self.storage = storage.part(cpu)
        self.dial = dialer.part(cpu)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event: asyncio.Event | None = None
        self._ready = threading.Event()
        self._clients: set[asyncio.Task] = set()

    def __repr__(self) -> str:
        return f"ServerThread(cpu={self.cpu}, bind={self.config.bind_addr!r})"

    def start(self) -> threading.Thread:
        """Start the thread serving this part and return it."""
        thread = threading.Thread(
            target=self._run, name=f"roster-{self.cpu}", daemon=True
        )
        thread.start()
        return thread

    def _run(self) -> None:
        _bind_to_cpu(self.cpu)
        asyncio.run(self._serve())

    def _listening_socket(self) -> socket.socket:
        if self.config.listener is not None:
            return self.config.listener.dup()
        return _bind_listener(self.config.bind_addr, reuse_port=True)

    async def _serve(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        try:
            server = await asyncio.start_server(
                self._handle_client,
                sock=self._listening_socket(),
                backlog=LISTEN_BACKLOG,
            )
        finally:
            self._ready.set()

        async with server:
            await self._stop_event.wait()
            server.close()
            for task in list(self._clients):
                task.cancel()
            await asyncio.gather(*self._clients, return_exceptions=True)

    def _request_stop(self) -> None:
        if not self._ready.wait(_STOP_WAIT):
            return
        loop, event = self._loop, self._stop_event
        if loop is None or event is None:
            return
        try:
            loop.call_soon_threadsafe(event.set)
        except RuntimeError:
            pass

    async def _handle_client(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._clients.add(task)
        sock = writer.get_extra_info("socket")
        addr = writer.get_extra_info("peername")
        laddr = writer.get_extra_info("sockname")
        fd = sock.fileno() if sock is not None else -1
        if sock is not None:
            try:
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            except OSError:
                pass

        meta_conn = self.supervisor.assign_new_connection(addr, laddr, fd)
        ctx = Context(self.storage, self.supervisor, meta_conn)
        connection, connection_r = split_connection(reader, writer, READ_BUFFER_SIZE)
        handler = Handler(connection, connection_r, self.dial.shard)
        try:
            await handler.run(ctx)
        except Exception:
            log.exception("connection %d failed", meta_conn.id)
        finally:
            meta_conn.stop()
            if task is not None:
                self._clients.discard(task)
            writer.close()
            try:
                await writer.wait_closed()
            except (OSError, ConnectionError):
                pass