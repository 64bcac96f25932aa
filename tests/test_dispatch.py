import pytest

from roster.acl import AclCat
from roster.client_commands import ClientGetName, ClientHelp, ClientId
from roster.commands import Get, Hello, Ping, Set, Unknown
from roster.dispatch import command_from_frame
from roster.frame import Array, Bulk, Integer, Simple, encode, parse
from roster.hashing import crc_hash
from roster.parse import EndOfStream, ParseError


def parse_cmd(*parts: str):
    wire = encode(Array(Bulk(part.encode("utf-8")) for part in parts))
    frame, _ = parse(wire, 0)
    return command_from_frame(frame)


def test_hello_parsing():
    frame, _ = parse(b"*1\r\n$5\r\nHELLO\r\n", 0)
    assert command_from_frame(frame) == Hello()


def test_hello_parsing_too_much():
    with pytest.raises(ParseError) as info:
        parse_cmd("HELLO", "BLBL")
    assert str(info.value) == (
        "protocol error; expected end of frame, but there was more"
    )


def test_client_getname_parsing():
    assert parse_cmd("CLIENT", "GETNAME") == ClientGetName()


def test_client_getname_parsing_too_much():
    with pytest.raises(ParseError) as info:
        parse_cmd("CLIENT", "GETNAME", "BLBL")
    assert str(info.value) == (
        "protocol error; expected end of frame, but there was more"
    )


def test_client_id_parsing():
    assert parse_cmd("CLIENT", "ID") == ClientId()


def test_client_without_subcommand_is_help():
    assert parse_cmd("CLIENT") == ClientHelp()


def test_ping_without_message():
    assert parse_cmd("PING") == Ping()


def test_ping_with_message():
    assert parse_cmd("PING", "msg") == Ping(b"msg")


def test_command_name_is_case_insensitive():
    assert parse_cmd("pInG") == Ping()


def test_get_parsing_and_hash_key():
    cmd = parse_cmd("GET", "mykey")
    assert cmd == Get("mykey")
    assert cmd.hash_key() == crc_hash(b"mykey")


def test_set_with_expiry():
    assert parse_cmd("SET", "mykey", "hello", "EX", "10") == Set(
        "mykey", b"hello", 10.0
    )


def test_get_with_extra_arguments_fails():
    with pytest.raises(ParseError):
        parse_cmd("GET", "a", "b")


def test_unknown_command_is_lowercased():
    assert parse_cmd("FOO", "bar") == Unknown("foo")


def test_acl_cat():
    assert parse_cmd("ACL", "CAT") == AclCat(None)


def test_acl_unknown_subcommand():
    assert parse_cmd("ACL", "WHOAMI") == Unknown("whoami")


def test_non_array_frame_is_rejected():
    with pytest.raises(ParseError) as info:
        command_from_frame(Simple("PING"))
    assert str(info.value).startswith("protocol error; expected array, got")


def test_empty_array_is_end_of_stream():
    with pytest.raises(EndOfStream):
        command_from_frame(Array(()))


def test_integer_command_name_is_rejected():
    with pytest.raises(ParseError):
        command_from_frame(Array([Integer(1)]))