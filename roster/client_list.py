"""CLIENT LIST: describe the client connections of the server."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from roster.commands import CommandExecution, FrameSink
from roster.context import Context
from roster.frame import Array, Simple
from roster.parse import EndOfStream, Parse, ParseError


class ClientType(enum.Enum):
    NORMAL = "normal"
    REPLICA = "replica"
    MASTER = "master"
    PUBSUB = "pubsub"


@dataclass
class ClientList(CommandExecution):
    """CLIENT LIST [TYPE type] [ID client-id ...]."""

    client_type: ClientType = ClientType.NORMAL
    ids: list[int] = field(default_factory=list)

    @classmethod
    def parse_frames(cls, parse: Parse) -> "ClientList":
        client_type = ClientType.NORMAL
        ids: list[int] = []

        while True:
            try:
                key_filter = parse.next_string().lower()
            except EndOfStream:
                break

            match key_filter:
                case "type":
                    try:
                        name = parse.next_string().lower()
                    except EndOfStream:
                        client_type = ClientType.NORMAL
                        continue
                    try:
                        client_type = ClientType(name)
                    except ValueError:
                        raise ParseError(
                            "Unknown client type, should be either normal "
                            "/ replica / master / pubsub."
                        ) from None
                case "id":
                    while True:
                        try:
                            ids.append(parse.next_int())
                        except EndOfStream:
                            break
                case rest:
                    raise ParseError(f"Unknown filter type '{rest}'")

        return cls(client_type, ids)

    async def apply(self, dst: FrameSink, ctx: Context) -> None:
        connections = ctx.supervisor.normal_connections()
        response = Array(Simple(conn.format_conn()) for conn in connections)
        await dst.write_frame(response)