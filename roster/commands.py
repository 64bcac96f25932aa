"""The basic commands: PING, GET, SET, HELLO and unknown commands."""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Protocol

from roster.context import Context
from roster.frame import Array, Bulk, Error, Frame, Integer, Map, Null, Simple
from roster.hashing import crc_hash
from roster.parse import EndOfStream, Parse, ParseError
from roster.storage import SetOptions
from roster.version import VERSION

log = logging.getLogger(__name__)


class FrameSink(Protocol):
    """Anything a response frame can be written to."""

    async def write_frame(self, frame: Frame) -> None: ...


class CommandExecution(abc.ABC):
    """A parsed command that can be applied to a connection."""

    @abc.abstractmethod
    async def apply(self, dst: FrameSink, ctx: Context) -> None:
        """Execute the command and write its response to ``dst``."""

    def hash_key(self) -> int | None:
        """Return the hash slot of the key this command works on, if any."""
        return None


@dataclass(frozen=True)
class Ping(CommandExecution):
    """PING [message]: reply PONG, or echo the message as a bulk."""

    msg: bytes | None = None

    @classmethod
    def parse_frames(cls, parse: Parse) -> "Ping":
        try:
            msg = parse.next_bytes()
        except EndOfStream:
            return cls()
        return cls(msg)

    async def apply(self, dst: FrameSink, ctx: Context) -> None:
        response = Simple("PONG") if self.msg is None else Bulk(self.msg)
        await dst.write_frame(response)


@dataclass(frozen=True)
class Get(CommandExecution):
    """GET key: reply with the value of the key, or null."""

    key: str

    @classmethod
    def parse_frames(cls, parse: Parse) -> "Get":
        return cls(parse.next_string())

    async def apply(self, dst: FrameSink, ctx: Context) -> None:
        value = ctx.storage.get(self.key, ctx.now())
        response = Null() if value is None else Bulk(value)
        await dst.write_frame(response)

    def hash_key(self) -> int | None:
        return crc_hash(self.key)


@dataclass(frozen=True)
class Set(CommandExecution):
    """SET key value [EX seconds|PX milliseconds]."""

    key: str
    value: bytes
    expire: float | None = None

    @classmethod
    def parse_frames(cls, parse: Parse) -> "Set":
        key = parse.next_string()
        value = parse.next_bytes()
        try:
            option = parse.next_string()
        except EndOfStream:
            return cls(key, value)

        match option.upper():
            case "EX":
                expire = float(parse.next_int())
            case "PX":
                expire = parse.next_int() / 1000
            case _:
                raise ParseError("currently `SET` only supports the expiration option")
        return cls(key, value, expire)

    async def apply(self, dst: FrameSink, ctx: Context) -> None:
        expired = None if self.expire is None else ctx.now() + self.expire
        ctx.storage.set(self.key, self.value, SetOptions(expired=expired))
        await dst.write_frame(Simple("OK"))

    def hash_key(self) -> int | None:
        return crc_hash(self.key)


@dataclass(frozen=True)
class Hello(CommandExecution):
    """HELLO: reply with server and connection properties, always in RESP 3."""

    @classmethod
    def parse_frames(cls, parse: Parse) -> "Hello":
        parse.finish()
        return cls()

    async def apply(self, dst: FrameSink, ctx: Context) -> None:
        response = Map(
            {
                Bulk(b"server"): Bulk(b"roster"),
                Bulk(b"version"): Bulk(VERSION.encode("utf-8")),
                Bulk(b"proto"): Integer(3),
                Bulk(b"id"): Integer(ctx.connection.id),
                Bulk(b"mode"): Bulk(b"standalone"),
                Bulk(b"role"): Bulk(b"undefined"),
                Bulk(b"modules"): Array(()),
            }
        )
        await dst.write_frame(response)


@dataclass(frozen=True)
class Unknown(CommandExecution):
    """A command the server does not know; replies with an error."""

    command_name: str

    async def apply(self, dst: FrameSink, ctx: Context) -> None:
        response = Error(f"ERR unknown command '{self.command_name}'")
        log.info("response: %r", response)
        await dst.write_frame(response)