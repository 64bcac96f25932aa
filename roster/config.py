"""Server configuration read from a file and the environment."""

from __future__ import annotations

import ipaddress
import json
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import dotenv_values, find_dotenv

ENV_PREFIX = "ROSTER"
ENV_SEPARATOR = "_"
CONFIG_LOCATION_VAR = "CONFIG_FILE_LOCATION"

_U16_MAX = 65535


class ConfigError(Exception):
    """The configuration is missing or invalid."""


def _load_toml(text: str) -> Any:
    return tomllib.loads(text)


def _load_json(text: str) -> Any:
    return json.loads(text)


_FORMATS = {".toml": _load_toml, ".json": _load_json}


@dataclass(frozen=True)
class Config:
    """Configuration of the server."""

    bind_addr: tuple[str, int]
    max_connection: int

    @property
    def host(self) -> str:
        return self.bind_addr[0]

    @property
    def port(self) -> int:
        return self.bind_addr[1]

    @classmethod
    def from_env(cls) -> "Config":
        """Load the file named by ``CONFIG_FILE_LOCATION`` (also read from ``.env``)."""
        dotenv_path = find_dotenv(usecwd=True)
        file_values = dotenv_values(dotenv_path) if dotenv_path else {}
        environ = {k: v for k, v in file_values.items() if v is not None}
        environ.update(os.environ)
        location = environ.get(CONFIG_LOCATION_VAR)
        if not location:
            raise ConfigError(f"`{CONFIG_LOCATION_VAR}` must be set.")
        return load_config(location, environ)


def _find_file(name: str | os.PathLike) -> Path:
    path = Path(name)
    if path.is_file() and path.suffix in _FORMATS:
        return path
    for suffix in _FORMATS:
        candidate = path.with_suffix(suffix)
        if candidate.is_file():
            return candidate
    raise ConfigError(f'configuration file "{name}" not found')


def _read_file(name: str | os.PathLike) -> dict[str, Any]:
    path = _find_file(name)
    try:
        data = _FORMATS[path.suffix](path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a table")
    return data


def _set_nested(settings: dict[str, Any], parts: list[str], value: str) -> None:
    node = settings
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value


def _apply_environment(settings: dict[str, Any], environ: Mapping[str, str]) -> None:
    prefix = (ENV_PREFIX + ENV_SEPARATOR).lower()
    for key, value in environ.items():
        lowered = key.lower()
        if not lowered.startswith(prefix):
            continue
        rest = lowered[len(prefix):]
        if not rest:
            continue
        parts = rest.split(ENV_SEPARATOR)
        if not all(parts):
            continue
        _set_nested(settings, parts, value)


def _parse_socket_addr(value: Any) -> tuple[str, int]:
    if not isinstance(value, str):
        raise ConfigError(f"invalid socket address: {value!r}")
    host, sep, port_text = value.rpartition(":")
    if not sep or not port_text.isdigit():
        raise ConfigError(f"invalid socket address: {value!r}")
    try:
        if host.startswith("[") and host.endswith("]"):
            ip = str(ipaddress.IPv6Address(host[1:-1]))
        else:
            ip = str(ipaddress.IPv4Address(host))
    except ValueError as exc:
        raise ConfigError(f"invalid socket address: {value!r}") from exc
    port = int(port_text)
    if port > _U16_MAX:
        raise ConfigError(f"invalid socket address: {value!r}")
    return ip, port


def _parse_u16(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"invalid value for {name}: {value!r}")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or not 0 <= value <= _U16_MAX:
        raise ConfigError(f"invalid value for {name}: {value!r}")
    return value


def _require(settings: Mapping[str, Any], name: str) -> Any:
    if name not in settings:
        raise ConfigError(f"missing field `{name}`")
    return settings[name]


def load_config(
    path: str | os.PathLike, environ: Mapping[str, str] | None = None
) -> Config:
    """Load configuration from ``path`` (extension optional), then the environment."""
    settings = _read_file(path)
    _apply_environment(settings, os.environ if environ is None else environ)
    return Config(
        bind_addr=_parse_socket_addr(_require(settings, "bind_addr")),
        max_connection=_parse_u16("max_connection", _require(settings, "max_connection")),
    )