"""Reading and writing frames on a stream connection."""

from __future__ import annotations

import asyncio
from typing import Protocol

from roster.frame import Frame, Incomplete, check, parse, write_frame

DEFAULT_BUFFER_SIZE = 4 * 1024


class ConnectionResetError_(ConnectionResetError):
    """The peer closed the connection in the middle of a frame."""


class _StreamWriter(Protocol):
    def write(self, data: bytes) -> object: ...

    async def drain(self) -> None: ...

    def close(self) -> object: ...

    async def wait_closed(self) -> None: ...


class ReadConnection:
    """Buffers incoming bytes and hands out whole frames."""

    def __init__(
        self, reader: asyncio.StreamReader, buf_size: int = DEFAULT_BUFFER_SIZE
    ) -> None:
        self.reader = reader
        self._chunk_size = max(buf_size, 1)
        self._buffer = bytearray()

    def __repr__(self) -> str:
        return "ReadConnection"

    def _parse_frame(self) -> Frame | None:
        try:
            end = check(self._buffer, 0)
        except Incomplete:
            return None
        data = bytes(self._buffer[:end])
        del self._buffer[:end]
        frame, _ = parse(data, 0)
        return frame

    async def read_frame(self) -> Frame | None:
        """Return the next frame, or None when the peer closed cleanly.

        Raises ``ConnectionResetError_`` if the stream ends inside a frame and
        ``FrameError`` if the data is not a valid frame.
        """
        while True:
            frame = self._parse_frame()
            if frame is not None:
                return frame
            chunk = await self.reader.read(self._chunk_size)
            if not chunk:
                if not self._buffer:
                    return None
                raise ConnectionResetError_("connection reset by peer")
            self._buffer.extend(chunk)


class WriteConnection:
    """Writes encoded frames to the stream and flushes them."""

    def __init__(self, writer: _StreamWriter) -> None:
        self.writer = writer

    def __repr__(self) -> str:
        return "WriteConnection"

    async def write_frame(self, frame: Frame) -> None:
        await write_frame(self.writer, frame)

    async def close(self) -> None:
        self.writer.close()
        await self.writer.wait_closed()


def split_connection(
    reader: asyncio.StreamReader,
    writer: _StreamWriter,
    buf_size: int = DEFAULT_BUFFER_SIZE,
) -> tuple[WriteConnection, ReadConnection]:
    """Wrap the two halves of a stream connection."""
    return WriteConnection(writer), ReadConnection(reader, buf_size)