"""Backend configuration for metricwire.

Sources, lowest to highest priority when layered by the caller:
    defaults -> config file (YAML, TOML, JSON) -> STATSD_* environment

Environment variables:
    STATSD_ADDR            host:port of the collector
    STATSD_HOST            collector host (overrides STATSD_ADDR host)
    STATSD_PORT            collector port (overrides STATSD_ADDR port)
    STATSD_IMPLEMENTATION  statsd | datadog | statsite | other
    STATSD_STRICT          reject unsupported event/service check metadata

Usage:
    >>> config = BackendConfig.from_env()
    >>> config.server = "127.0.0.1:8125"
    >>> config.flavor = Flavor.DATADOG
"""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from metricwire.types import Flavor

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8125


class ConfigError(Exception):
    """Invalid backend configuration."""

    pass


def parse_bool(value: Any) -> bool:
    """Parse a boolean from config or environment values."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "yes", "1", "on"):
        return True
    if text in ("false", "no", "0", "off", ""):
        return False
    raise ConfigError(f"Invalid boolean value: {value!r}")


def parse_port(value: Any) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid port: {value!r}") from None
    if not 0 < port < 65536:
        raise ConfigError(f"Port out of range: {port}")
    return port


def parse_server(server: str) -> tuple[str, int]:
    """Split ``"host:port"``; the port is whatever follows the last colon."""
    host, sep, port = server.strip().rpartition(":")
    if not sep or not host:
        raise ConfigError(f"Expected 'host:port', got {server!r}")
    return host.strip("[]"), parse_port(port)


@dataclass
class BackendConfig:
    """Mutable collector settings.

    Changing ``host`` or ``port`` invalidates the backend's cached socket;
    the transport notices on its next use. ``flavor`` gates which metric
    kinds are accepted and is read on every call.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    flavor: Flavor = Flavor.STATSD
    strict: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.flavor, str):
            self.flavor = Flavor.from_string(self.flavor)
        self.port = parse_port(self.port)
        self.strict = parse_bool(self.strict)

    @property
    def address(self) -> tuple[str, int]:
        """Current (host, port) target."""
        return (self.host, self.port)

    @property
    def server(self) -> str:
        return f"{self.host}:{self.port}"

    @server.setter
    def server(self, value: str) -> None:
        self.host, self.port = parse_server(value)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BackendConfig":
        """Build a config from a mapping.

        Accepts ``host``, ``port``, ``server`` (``host:port``),
        ``flavor`` (alias ``implementation``) and ``strict``. A nested
        ``statsd`` section is used when present. Unknown keys are ignored.
        """
        if isinstance(data.get("statsd"), Mapping):
            data = data["statsd"]

        config = cls()
        if data.get("server"):
            config.server = str(data["server"])
        if data.get("host"):
            config.host = str(data["host"])
        if data.get("port") is not None:
            config.port = parse_port(data["port"])
        flavor = data.get("flavor", data.get("implementation"))
        if flavor:
            config.flavor = Flavor.from_string(str(flavor))
        if data.get("strict") is not None:
            config.strict = parse_bool(data["strict"])
        return config

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        prefix: str = "STATSD",
    ) -> "BackendConfig":
        """Build a config from ``<prefix>_*`` environment variables."""
        env = os.environ if environ is None else environ

        data: dict[str, Any] = {}
        for key in ("addr", "host", "port", "implementation", "strict"):
            value = env.get(f"{prefix}_{key.upper()}")
            if value is not None and value != "":
                data[key] = value
        if "addr" in data:
            data["server"] = data.pop("addr")
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: str | Path) -> "BackendConfig":
        """Load a config file (.yaml, .yml, .toml or .json).

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigError: If the file cannot be parsed.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = path.suffix.lower()
        try:
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            elif suffix == ".toml":
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            elif suffix == ".json":
                data = json.loads(path.read_text(encoding="utf-8"))
            else:
                raise ConfigError(f"Unsupported config format: {suffix}")
        except (yaml.YAMLError, tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to parse {path}: {e}") from e

        if not isinstance(data, Mapping):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return cls.from_dict(data)
