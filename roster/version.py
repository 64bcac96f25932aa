"""Version information for the server."""

from __future__ import annotations

import subprocess

PACKAGE_VERSION = "0.1.0"

VERSION = PACKAGE_VERSION


def git_hash() -> str:
    """Return the short hash of the current git HEAD, or an empty string."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        return ""
    if result.returncode != 0:
        return ""
    return result.stdout.strip()


def version_string(dev: bool = False) -> str:
    """Return the version string; development builds carry the git hash."""
    if dev:
        return f"(dev) {PACKAGE_VERSION}-{git_hash()}"
    return PACKAGE_VERSION