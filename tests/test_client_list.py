import re

import pytest

from roster.client_list import ClientList, ClientType
from roster.context import Context
from roster.frame import Array, Bulk, Integer, Simple
from roster.parse import Parse, ParseError
from roster.storage import Slot, StorageSegment
from roster.supervisor import Supervisor

LINE_RE = re.compile(r"^id=0 addr=.*? laddr=.*? fd=.*? name=$")


class Recorder:
    def __init__(self):
        self.frames = []

    async def write_frame(self, frame):
        self.frames.append(frame)


def parse_list(*parts):
    frames = [Bulk(p) if isinstance(p, bytes) else p for p in parts]
    parse = Parse(Array([Bulk(b"CLIENT"), Bulk(b"LIST"), *frames]))
    parse.next_string()
    parse.next_string()
    return ClientList.parse_frames(parse)


def test_parsing_base():
    cmd = parse_list()
    assert cmd.client_type is ClientType.NORMAL
    assert cmd.ids == []


@pytest.mark.parametrize(
    "name, expected",
    [
        (b"NORMAL", ClientType.NORMAL),
        (b"MASTER", ClientType.MASTER),
        (b"REPLICA", ClientType.REPLICA),
        (b"PUBSUB", ClientType.PUBSUB),
    ],
)
def test_parsing_types(name, expected):
    cmd = parse_list(b"TYPE", name)
    assert cmd.client_type is expected
    assert cmd.ids == []


def test_parsing_fail():
    with pytest.raises(ParseError) as info:
        parse_list(b"TYPE", b"FAIL")
    assert str(info.value) == (
        "Unknown client type, should be either normal / replica / master / pubsub."
    )


def test_parsing_normal_id():
    cmd = parse_list(b"TYPE", b"NORMAL", b"ID", Integer(1), Integer(2))
    assert cmd == ClientList(ClientType.NORMAL, [1, 2])


def test_parsing_type_without_value_is_normal():
    assert parse_list(b"TYPE").client_type is ClientType.NORMAL


def test_parsing_unknown_filter():
    with pytest.raises(ParseError) as info:
        parse_list(b"SKIPME")
    assert str(info.value) == "Unknown filter type 'skipme'"


def test_parsing_invalid_id():
    with pytest.raises(ParseError) as info:
        parse_list(b"ID", b"abc")
    assert str(info.value) == "protocol error; invalid number"


@pytest.mark.asyncio
async def test_apply_lists_open_connections():
    supervisor = Supervisor(0)
    conn = supervisor.assign_new_connection(("127.0.0.1", 5000), ("127.0.0.1", 6379), 7)
    ctx = Context(StorageSegment(Slot(0, 16384)), supervisor, conn)
    dst = Recorder()
    await ClientList().apply(dst, ctx)
    (frame,) = dst.frames
    assert len(frame.items) == 1
    assert LINE_RE.match(frame.items[0].value)


@pytest.mark.asyncio
async def test_apply_skips_stopped_connections():
    supervisor = Supervisor(0)
    first = supervisor.assign_new_connection(("127.0.0.1", 5000), ("127.0.0.1", 6379), 7)
    second = supervisor.assign_new_connection(("127.0.0.1", 5001), ("127.0.0.1", 6379), 8)
    second.set_name("newname")
    first.stop()
    ctx = Context(StorageSegment(Slot(0, 16384)), supervisor, second)
    dst = Recorder()
    await ClientList().apply(dst, ctx)
    assert dst.frames == [
        Array([Simple("id=1 addr=127.0.0.1:5001 laddr=127.0.0.1:6379 fd=8 name=newname")])
    ]