"""Frames of the Redis protocol: types, decoding and encoding."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Protocol, Union

_U64_MAX = 2**64 - 1
_INVALID_FORMAT = "protocol error; invalid frame format"

_SIMPLE = ord("+")
_ERROR = ord("-")
_INTEGER = ord(":")
_BULK = ord("$")
_ARRAY = ord("*")
_MAP = ord("%")
_CRLF = b"\r\n"


class FrameError(Exception):
    """Invalid message encoding."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"Invalid message encoding: {self.message}"


class Incomplete(FrameError):
    """Not enough data is available to decode a whole frame."""

    def __init__(self) -> None:
        super().__init__("ended early")

    def __str__(self) -> str:
        return "ended early"


@dataclass(frozen=True, slots=True)
class Simple:
    value: str


@dataclass(frozen=True, slots=True)
class Error:
    value: str


@dataclass(frozen=True, slots=True)
class Integer:
    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value <= _U64_MAX:
            raise ValueError(f"integer frame out of range: {self.value}")


@dataclass(frozen=True, slots=True)
class Bulk:
    value: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", bytes(self.value))


@dataclass(frozen=True, slots=True)
class Null:
    pass


@dataclass(frozen=True, slots=True)
class Array:
    items: tuple

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True, slots=True)
class Map:
    """A map frame; its dict of entries makes it unhashable."""

    entries: dict

    def __post_init__(self) -> None:
        entries = self.entries
        if not isinstance(entries, Mapping):
            entries = dict(entries)
        object.__setattr__(self, "entries", dict(entries))


Frame = Union[Simple, Error, Integer, Bulk, Null, Array, Map]


class _Writer(Protocol):
    def write(self, data: bytes) -> object: ...

    async def drain(self) -> None: ...


def _get_u8(buf: bytes, pos: int) -> tuple[int, int]:
    if pos >= len(buf):
        raise Incomplete()
    return buf[pos], pos + 1


def _peek_u8(buf: bytes, pos: int) -> int:
    if pos >= len(buf):
        raise Incomplete()
    return buf[pos]


def _skip(buf: bytes, pos: int, n: int) -> int:
    if len(buf) - pos < n:
        raise Incomplete()
    return pos + n


def _get_line(buf: bytes, pos: int) -> tuple[bytes, int]:
    end = buf.find(_CRLF, pos)
    if end < 0:
        raise Incomplete()
    return bytes(buf[pos:end]), end + 2


def _parse_u64(line: bytes) -> int:
    if not line or not line.isdigit():
        raise FrameError(_INVALID_FORMAT)
    value = int(line)
    if value > _U64_MAX:
        raise FrameError(_INVALID_FORMAT)
    return value


def _get_decimal(buf: bytes, pos: int) -> tuple[int, int]:
    line, pos = _get_line(buf, pos)
    return _parse_u64(line), pos


def _decode_text(line: bytes) -> str:
    try:
        return line.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FrameError(_INVALID_FORMAT) from exc


def _invalid_type(kind: int) -> FrameError:
    return FrameError(f"protocol error; invalid frame type byte `{kind}`")


def check(buf: bytes | bytearray, pos: int = 0) -> int:
    """Check that a whole frame starts at ``pos``; return the position after it.

    Raises ``Incomplete`` when more data is needed and ``FrameError`` when the
    data cannot be a valid frame.
    """
    kind, pos = _get_u8(buf, pos)
    if kind in (_SIMPLE, _ERROR):
        _, pos = _get_line(buf, pos)
        return pos
    if kind == _INTEGER:
        _, pos = _get_decimal(buf, pos)
        return pos
    if kind == _BULK:
        if _peek_u8(buf, pos) == _ERROR:
            return _skip(buf, pos, 4)
        length, pos = _get_decimal(buf, pos)
        return _skip(buf, pos, length + 2)
    if kind == _ARRAY:
        count, pos = _get_decimal(buf, pos)
        for _ in range(count):
            pos = check(buf, pos)
        return pos
    if kind == _MAP:
        count, pos = _get_decimal(buf, pos)
        for _ in range(count * 2):
            pos = check(buf, pos)
        return pos
    raise _invalid_type(kind)


def parse(buf: bytes | bytearray, pos: int = 0) -> tuple[Frame, int]:
    """Decode the frame starting at ``pos``; return it with the position after it."""
    kind, pos = _get_u8(buf, pos)
    if kind == _SIMPLE:
        line, pos = _get_line(buf, pos)
        return Simple(_decode_text(line)), pos
    if kind == _ERROR:
        line, pos = _get_line(buf, pos)
        return Error(_decode_text(line)), pos
    if kind == _INTEGER:
        value, pos = _get_decimal(buf, pos)
        return Integer(value), pos
    if kind == _BULK:
        if _peek_u8(buf, pos) == _ERROR:
            line, pos = _get_line(buf, pos)
            if line != b"-1":
                raise FrameError(_INVALID_FORMAT)
            return Null(), pos
        length, pos = _get_decimal(buf, pos)
        if len(buf) - pos < length + 2:
            raise Incomplete()
        data = bytes(buf[pos : pos + length])
        return Bulk(data), _skip(buf, pos, length + 2)
    if kind == _ARRAY:
        count, pos = _get_decimal(buf, pos)
        items = []
        for _ in range(count):
            item, pos = parse(buf, pos)
            items.append(item)
        return Array(items), pos
    if kind == _MAP:
        count, pos = _get_decimal(buf, pos)
        entries: dict = {}
        for _ in range(count):
            key, pos = parse(buf, pos)
            value, pos = parse(buf, pos)
            entries[key] = value
        return Map(entries), pos
    raise _invalid_type(kind)


def _write_decimal(out: bytearray, value: int) -> None:
    out.extend(str(value).encode("ascii"))
    out.extend(_CRLF)


def _write_value(out: bytearray, frame: Frame) -> None:
    match frame:
        case Simple(value):
            out.extend(b"+")
            out.extend(value.encode("utf-8"))
            out.extend(_CRLF)
        case Error(value):
            out.extend(b"-")
            out.extend(value.encode("utf-8"))
            out.extend(_CRLF)
        case Integer(value):
            out.extend(b":")
            _write_decimal(out, value)
        case Null():
            out.extend(b"$-1\r\n")
        case Bulk(value):
            out.extend(b"$")
            _write_decimal(out, len(value))
            out.extend(value)
            out.extend(_CRLF)
        case Map(entries):
            out.extend(b"%")
            _write_decimal(out, len(entries))
            for key, value in entries.items():
                _write_value(out, key)
                _write_value(out, value)
        case Array(items):
            out.extend(b"*")
            _write_decimal(out, len(items))
            for item in items:
                _write_value(out, item)
        case _:
            raise TypeError(f"not a frame: {frame!r}")


def encode(frame: Frame) -> bytes:
    """Encode a frame to its wire representation."""
    out = bytearray()
    _write_value(out, frame)
    return bytes(out)


async def write_frame(writer: _Writer, frame: Frame) -> None:
    """Write an encoded frame to ``writer`` and flush it."""
    writer.write(encode(frame))
    await writer.drain()


def frames_from(items: Iterable[Frame]) -> Array:
    """Build an array frame from an iterable of frames."""
    return Array(tuple(items))