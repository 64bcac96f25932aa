"""Per-connection handling: read frames, apply commands, answer in order."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from roster.commands import CommandExecution
from roster.connection import ReadConnection, WriteConnection
from roster.context import Context
from roster.dialer import Shard
from roster.dispatch import command_from_frame
from roster.frame import Frame

_END = object()


@dataclass
class ConnectionMsg:
    """A connection handed from one shard to another with its pending work."""

    fd: int
    current_command: CommandExecution
    rest_frame: list[Frame] = field(default_factory=list)


@dataclass
class Handler:
    """Reads requests from a connection and applies the commands."""

    connection: WriteConnection
    connection_r: ReadConnection
    shard: Shard | None = None

    async def run(self, ctx: Context) -> None:
        await self._run_internal(ctx, None)

    async def continue_run(
        self, ctx: Context, current_command: CommandExecution
    ) -> None:
        """Apply ``current_command`` first, then handle the connection as usual."""
        await self._run_internal(ctx, current_command)

    async def _run_internal(
        self, ctx: Context, current_command: CommandExecution | None
    ) -> None:
        frames: asyncio.Queue = asyncio.Queue()

        async def read_frames() -> None:
            try:
                while True:
                    frame = await self.connection_r.read_frame()
                    if frame is None:
                        return
                    frames.put_nowait(frame)
            finally:
                frames.put_nowait(_END)

        async def answer_in_order() -> None:
            if current_command is not None:
                await current_command.apply(self.connection, ctx)
            while True:
                frame = await frames.get()
                if frame is _END:
                    return
                command = command_from_frame(frame)
                await command.apply(self.connection, ctx)

        tasks = [
            asyncio.create_task(read_frames()),
            asyncio.create_task(answer_in_order()),
        ]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
            for task in done:
                task.result()
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)