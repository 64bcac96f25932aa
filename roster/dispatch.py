"""Turn a received frame into the command it names."""

from __future__ import annotations

from collections.abc import Callable

from roster.acl import parse_acl
from roster.client_commands import parse_client
from roster.commands import CommandExecution, Get, Hello, Ping, Set, Unknown
from roster.frame import Frame
from roster.parse import Parse

_COMMANDS: dict[str, Callable[[Parse], CommandExecution]] = {
    "ping": Ping.parse_frames,
    "hello": Hello.parse_frames,
    "set": Set.parse_frames,
    "get": Get.parse_frames,
}

_SUBCOMMAND_REGISTRIES: dict[str, Callable[[Parse], CommandExecution]] = {
    "acl": parse_acl,
    "client": parse_client,
}


def command_from_frame(frame: Frame) -> CommandExecution:
    """Parse a command from an array frame whose first entry is the command name.

    Unrecognised names give an ``Unknown`` command; malformed frames raise
    ``ParseError``.
    """
    parse = Parse(frame)
    command_name = parse.next_string().lower()

    registry = _SUBCOMMAND_REGISTRIES.get(command_name)
    if registry is not None:
        return registry(parse)

    parser = _COMMANDS.get(command_name)
    if parser is None:
        return Unknown(command_name)

    command = parser(parse)
    parse.finish()
    return command