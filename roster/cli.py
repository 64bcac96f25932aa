"""Command-line entry point that starts the server."""

from __future__ import annotations

import argparse
import os
import sys

from roster.config import Config, ConfigError
from roster.server import ServerConfig
from roster.version import VERSION


def banner(version: str, mode: str, port: int, addr: str, pid: int) -> str:
    """Return the start-up banner."""
    lines = [
        f"Roster {version}",
        f"Running in {mode} mode",
        f"Port: {port}",
        f"Addr: {addr}",
        f"PID: {pid}",
    ]
    width = max(len(line) for line in lines)
    rule = "+" + "-" * (width + 2) + "+"
    body = [f"| {line.ljust(width)} |" for line in lines]
    return "\n".join(["", rule, *body, rule, ""])


def main(argv: list[str] | None = None) -> int:
    """Load the configuration, start the server and wait for it."""
    parser = argparse.ArgumentParser(
        prog="roster", description="Redis protocol compatible key/value server."
    )
    parser.add_argument("--version", action="version", version=VERSION)
    parser.parse_args(argv)

    try:
        config = Config.from_env()
        handle = ServerConfig(
            bind_addr=config.bind_addr, connections_limit=config.max_connection
        ).initialize()
    except (ConfigError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    host, port = handle.bind
    print(banner(VERSION, "standalone", port, host, os.getpid()))

    try:
        handle.join()
    except KeyboardInterrupt:
        handle.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())