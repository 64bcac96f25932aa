"""The ACL subcommands."""

from __future__ import annotations

from dataclasses import dataclass

from roster.commands import CommandExecution, FrameSink, Unknown
from roster.context import Context
from roster.parse import Parse, ParseError


class CommandNotSupported(Exception):
    """The command is recognised but the server cannot execute it."""


@dataclass(frozen=True)
class AclCat(CommandExecution):
    """ACL CAT [category]."""

    category: str | None = None

    @classmethod
    def parse_frames(cls, parse: Parse) -> "AclCat":
        try:
            category = parse.next_string()
        except ParseError:
            category = None
        return cls(category)

    async def apply(self, dst: FrameSink, ctx: Context) -> None:
        raise CommandNotSupported("ACL CAT is not supported by this server")


def parse_acl(parse: Parse) -> CommandExecution:
    """Parse an ACL subcommand; the ACL name has already been consumed."""
    sub_command = parse.next_string().lower()
    if sub_command != "cat":
        return Unknown(sub_command)
    command = AclCat.parse_frames(parse)
    parse.finish()
    return command