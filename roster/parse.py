"""Cursor over the parts of a command frame."""

from __future__ import annotations

from collections.abc import Iterator

from roster.frame import Array, Bulk, Frame, Integer, Simple

_U64_MAX = 2**64 - 1
_INVALID_NUMBER = "protocol error; invalid number"


class ParseError(Exception):
    """A command frame could not be parsed."""


class EndOfStream(ParseError):
    """Every part of the command frame has already been consumed."""

    def __init__(self) -> None:
        super().__init__("protocol error; unexpected end of stream")


def _parse_u64(data: bytes) -> int:
    if not data or not data.isdigit():
        raise ParseError(_INVALID_NUMBER)
    value = int(data)
    if value > _U64_MAX:
        raise ParseError(_INVALID_NUMBER)
    return value


class Parse:
    """Reads the entries of an array frame one after another."""

    def __init__(self, frame: Frame) -> None:
        if not isinstance(frame, Array):
            raise ParseError(f"protocol error; expected array, got {frame!r}")
        self._parts: Iterator[Frame] = iter(frame.items)

    def __repr__(self) -> str:
        return "Parse()"

    def _next(self) -> Frame:
        try:
            return next(self._parts)
        except StopIteration:
            raise EndOfStream() from None

    def next_string(self) -> str:
        """Return the next entry as text; simple and bulk frames qualify."""
        match self._next():
            case Simple(value):
                return value
            case Bulk(data):
                try:
                    return data.decode("utf-8")
                except UnicodeDecodeError:
                    raise ParseError("protocol error; invalid string") from None
            case other:
                raise ParseError(
                    "protocol error; expected simple frame or bulk frame, "
                    f"got {other!r}"
                )

    def next_bytes(self) -> bytes:
        """Return the next entry as raw bytes; simple and bulk frames qualify."""
        match self._next():
            case Simple(value):
                return value.encode("utf-8")
            case Bulk(data):
                return data
            case other:
                raise ParseError(
                    "protocol error; expected simple frame or bulk frame, "
                    f"got {other!r}"
                )

    def next_int(self) -> int:
        """Return the next entry as an unsigned integer."""
        match self._next():
            case Integer(value):
                return value
            case Simple(value):
                return _parse_u64(value.encode("utf-8"))
            case Bulk(data):
                return _parse_u64(data)
            case other:
                raise ParseError(
                    f"protocol error; expected int frame but got {other!r}"
                )

    def finish(self) -> None:
        """Raise if any entry is left unconsumed."""
        if next(self._parts, None) is not None:
            raise ParseError(
                "protocol error; expected end of frame, but there was more"
            )