"""The CLIENT subcommands: HELP, SETINFO, INFO, SETNAME, GETNAME and ID."""

from __future__ import annotations

from dataclasses import dataclass

from roster.client_list import ClientList
from roster.commands import CommandExecution, FrameSink, Unknown
from roster.context import Context
from roster.frame import Array, Bulk, Integer, Null, Simple
from roster.parse import EndOfStream, Parse, ParseError

HELP_TEXT = """CLIENT <subcommand> [<arg> [value] [opt] ...]. subcommands are:
GETNAME
    Return the name of the current connection.
ID
    Return the ID of the current connection.
INFO
    Return information about the current client connection.
LIST [options ...]
    Return information about client connections. Options:
    * TYPE (NORMAL|MASTER|REPLICA|PUBSUB)
      Return clients of specified type.
SETNAME <name>
    Assign the name <name> to the current connection.
SETINFO <option> <value>
    Set client meta attr. Options are:
    * LIB-NAME: the client lib name.
    * LIB-VER: the client lib version.
HELP
    Print this help.
"""

LIB_NAME = b"LIB-NAME"
LIB_VERSION = b"LIB-VER"


@dataclass(frozen=True)
class ClientHelp(CommandExecution):
    """CLIENT HELP: reply with one simple frame per line of help."""

    async def apply(self, dst: FrameSink, ctx: Context) -> None:
        await dst.write_frame(Array(Simple(line) for line in HELP_TEXT.splitlines()))


@dataclass(frozen=True)
class ClientSetInfo(CommandExecution):
    """CLIENT SETINFO <LIB-NAME libname | LIB-VER libver>."""

    lib_name: bytes | None = None
    lib_version: bytes | None = None

    @classmethod
    def parse_frames(cls, parse: Parse) -> "ClientSetInfo":
        results: list[bytes | ParseError] = []
        for _ in range(2):
            try:
                results.append(parse.next_bytes())
            except ParseError as exc:
                results.append(exc)

        if any(isinstance(item, EndOfStream) for item in results):
            return cls()
        for item in results:
            if isinstance(item, ParseError):
                raise item

        key, value = results
        if key == LIB_NAME:
            return cls(lib_name=value)
        if key == LIB_VERSION:
            return cls(lib_version=value)
        return cls()

    async def apply(self, dst: FrameSink, ctx: Context) -> None:
        await dst.write_frame(Simple("OK"))


@dataclass(frozen=True)
class ClientInfo(CommandExecution):
    """CLIENT INFO: describe the current connection."""

    @classmethod
    def parse_frames(cls, parse: Parse) -> "ClientInfo":
        parse.finish()
        return cls()

    async def apply(self, dst: FrameSink, ctx: Context) -> None:
        await dst.write_frame(Simple(ctx.connection.format_conn()))


@dataclass(frozen=True)
class ClientSetName(CommandExecution):
    """CLIENT SETNAME <name>: name the current connection."""

    name: str

    @classmethod
    def parse_frames(cls, parse: Parse) -> "ClientSetName":
        return cls(parse.next_string())

    async def apply(self, dst: FrameSink, ctx: Context) -> None:
        ctx.connection.set_name(self.name)
        await dst.write_frame(Simple("OK"))


@dataclass(frozen=True)
class ClientGetName(CommandExecution):
    """CLIENT GETNAME: reply with the connection name, or null."""

    @classmethod
    def parse_frames(cls, parse: Parse) -> "ClientGetName":
        parse.finish()
        return cls()

    async def apply(self, dst: FrameSink, ctx: Context) -> None:
        name = ctx.connection.name
        response = Null() if name is None else Bulk(name.encode("utf-8"))
        await dst.write_frame(response)


@dataclass(frozen=True)
class ClientId(CommandExecution):
    """CLIENT ID: reply with the id of the current connection."""

    @classmethod
    def parse_frames(cls, parse: Parse) -> "ClientId":
        return cls()

    async def apply(self, dst: FrameSink, ctx: Context) -> None:
        await dst.write_frame(Integer(ctx.connection.id))


_SUBCOMMANDS = {
    "setinfo": ClientSetInfo.parse_frames,
    "setname": ClientSetName.parse_frames,
    "getname": ClientGetName.parse_frames,
    "id": ClientId.parse_frames,
    "info": ClientInfo.parse_frames,
    "list": ClientList.parse_frames,
    "help": lambda parse: ClientHelp(),
}


def parse_client(parse: Parse) -> CommandExecution:
    """Parse a CLIENT subcommand; the CLIENT name has already been consumed."""
    try:
        sub_command = parse.next_string().lower()
    except EndOfStream:
        return ClientHelp()

    parser = _SUBCOMMANDS.get(sub_command)
    if parser is None:
        return Unknown(sub_command)

    command = parser(parse)
    parse.finish()
    return command