import pytest

from roster.frame import (
    Array,
    Bulk,
    Error,
    FrameError,
    Incomplete,
    Integer,
    Map,
    Null,
    Simple,
    check,
    encode,
    parse,
    write_frame,
)

PING = b"*1\r\n$4\r\nPING\r\n"
GET = b"*2\r\n$3\r\nGET\r\n$5\r\nhello\r\n"


@pytest.mark.parametrize(
    "data",
    [
        b"*2\r\n$3\r\nGET\r\n$5\r\nhello\r\n",
        b"*2\r\n$4\r\nPING\r\n$5\r\nhello\r\n",
    ],
)
def test_simple_frame_check(data):
    assert check(data) == len(data)


def test_map_frame_check():
    data = b"%2\r\n+first\r\n:1\r\n+second\r\n:2\r\n"
    assert check(bytearray(data)) == len(data)


def test_parse_ping():
    frame, pos = parse(PING)
    assert frame == Array([Bulk(b"PING")])
    assert pos == len(PING)


def test_parse_get():
    frame, pos = parse(GET)
    assert frame == Array([Bulk(b"GET"), Bulk(b"hello")])
    assert pos == len(GET)


def test_check_then_parse():
    buf = bytearray(GET)
    end = check(buf)
    frame, pos = parse(bytes(buf[:end]))
    assert frame == Array([Bulk(b"GET"), Bulk(b"hello")])
    assert pos == end


def test_check_stops_at_frame_end():
    assert check(b"+OK\r\n+NEXT\r\n") == 5


def test_write_decimal_value():
    assert encode(Integer(12)) == b":12\r\n"


def test_write_value_null():
    assert encode(Null()) == b"$-1\r\n"


def test_write_value_string():
    assert encode(Simple("blblblbl")) == b"+blblblbl\r\n"


def test_write_value_int():
    assert encode(Integer(123456)) == b":123456\r\n"


def test_write_value_err():
    assert encode(Error("blblblbl")) == b"-blblblbl\r\n"


def test_write_value_hashmap():
    frame = Map({Simple("first"): Integer(1), Simple("second"): Integer(2)})
    assert encode(frame) == b"%2\r\n+first\r\n:1\r\n+second\r\n:2\r\n"


def test_write_value_hashmap_string():
    frame = Map({Simple("first"): Simple("one"), Simple("second"): Integer(2)})
    assert encode(frame) == b"%2\r\n+first\r\n+one\r\n+second\r\n:2\r\n"


def test_write_bulk_and_array():
    assert encode(Array([Bulk(b"GET"), Bulk(b"hello")])) == GET


class _FakeWriter:
    def __init__(self):
        self.data = bytearray()
        self.drained = 0

    def write(self, data):
        self.data.extend(data)

    async def drain(self):
        self.drained += 1


@pytest.mark.asyncio
async def test_write_frame_writes_and_flushes():
    writer = _FakeWriter()
    frame = Map({Simple("first"): Integer(1), Simple("second"): Integer(2)})
    await write_frame(writer, frame)
    assert bytes(writer.data) == b"%2\r\n+first\r\n:1\r\n+second\r\n:2\r\n"
    assert writer.drained == 1


@pytest.mark.parametrize(
    "frame",
    [
        Simple("OK"),
        Error("ERR unknown command 'foo'"),
        Integer(0),
        Integer(2**64 - 1),
        Bulk(b""),
        Bulk(b"bin\r\nary\x00"),
        Null(),
        Array([]),
        Array([Simple("a"), Array([Integer(1), Null()])]),
        Map({Bulk(b"server"): Bulk(b"roster"), Bulk(b"modules"): Array([])}),
    ],
)
def test_round_trip(frame):
    data = encode(frame)
    assert check(data) == len(data)
    assert parse(data) == (frame, len(data))


def test_every_prefix_is_incomplete():
    for end in range(len(GET)):
        with pytest.raises(Incomplete):
            check(GET[:end])


def test_parse_incomplete_bulk():
    with pytest.raises(Incomplete):
        parse(b"$5\r\nhel")


def test_invalid_type_byte():
    with pytest.raises(FrameError, match="invalid frame type byte") as info:
        check(b"?x\r\n")
    assert not isinstance(info.value, Incomplete)


def test_parse_invalid_type_byte():
    with pytest.raises(FrameError, match="invalid frame type byte"):
        parse(b"!x\r\n")


def test_parse_null_bulk():
    assert parse(b"$-1\r\n") == (Null(), 5)


def test_parse_bad_negative_bulk():
    with pytest.raises(FrameError, match="invalid frame format"):
        parse(b"$-2\r\n")


def test_invalid_decimal():
    with pytest.raises(FrameError, match="invalid frame format"):
        check(b":abc\r\n")


def test_decimal_overflow():
    with pytest.raises(FrameError, match="invalid frame format"):
        parse(b":18446744073709551616\r\n")


def test_invalid_utf8_simple():
    with pytest.raises(FrameError):
        parse(b"+\xff\xfe\r\n")


def test_map_duplicate_key_overwrites():
    frame, _ = parse(b"%2\r\n+a\r\n:1\r\n+a\r\n:2\r\n")
    assert frame == Map({Simple("a"): Integer(2)})


def test_array_is_hashable_map_is_not():
    assert hash(Array([Simple("x")])) == hash(Array((Simple("x"),)))
    with pytest.raises(TypeError):
        hash(Map({}))


def test_integer_range_enforced():
    with pytest.raises(ValueError):
        Integer(-1)


def test_error_messages():
    assert str(Incomplete()) == "ended early"
    assert str(FrameError("boom")) == "Invalid message encoding: boom"


def test_encode_rejects_non_frame():
    with pytest.raises(TypeError):
        encode("not a frame")