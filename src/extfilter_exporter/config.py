"""Pydantic-validated exporter config loaded from TOML.

TOML loading uses ``tomllib`` (3.11+) with ``tomli`` fallback.
Command-line flags are applied on top with :func:`apply_overrides`.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

from extfilter_exporter.base import ConfigError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

_CONFIG_DIR = Path("~/.config/extfilter_exporter").expanduser()
_DEFAULT_CONFIG_PATH = _CONFIG_DIR / "config.toml"

DEFAULT_LISTEN_ADDRESS = ":9513"
DEFAULT_TELEMETRY_PATH = "/metrics"


def parse_listen_address(address: str) -> tuple[str, int]:
    """Split ``[host]:port`` into ``(host, port)``.

    An empty host means all interfaces. IPv6 hosts must be bracketed
    (``[::1]:9513``); the brackets are stripped.
    """
    host, sep, port_str = address.rpartition(":")
    if not sep:
        msg = f"listen address {address!r} must be of the form [host]:port"
        raise ValueError(msg)

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        msg = f"IPv6 host in listen address {address!r} must be bracketed"
        raise ValueError(msg)

    try:
        port = int(port_str)
    except ValueError:
        msg = f"invalid port {port_str!r} in listen address {address!r}"
        raise ValueError(msg) from None
    if not 0 <= port <= 65535:
        msg = f"port {port} in listen address {address!r} is out of range"
        raise ValueError(msg)
    return host, port


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class StatsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: Path | None = None


class WebConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    listen_address: str = DEFAULT_LISTEN_ADDRESS
    telemetry_path: str = DEFAULT_TELEMETRY_PATH

    @field_validator("listen_address")
    @classmethod
    def _check_listen_address(cls, v: str) -> str:
        parse_listen_address(v)
        return v

    @field_validator("telemetry_path")
    @classmethod
    def _check_telemetry_path(cls, v: str) -> str:
        if not v.startswith("/"):
            msg = "telemetry_path must start with '/'"
            raise ValueError(msg)
        return v

    @property
    def bind(self) -> tuple[str, int]:
        return parse_listen_address(self.listen_address)


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ExporterConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    stats: StatsConfig = StatsConfig()
    web: WebConfig = WebConfig()
    logging: LoggingConfig = LoggingConfig()


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_config(path: Path | None = None) -> ExporterConfig:
    """Load config from *path*, the default location, or built-in defaults.

    Resolution order:
    1. Explicit *path* (error if missing or invalid).
    2. ``~/.config/extfilter_exporter/config.toml`` (skip silently if absent).
    3. Built-in defaults.

    Raises :class:`ConfigError` on parse/validation failure.
    """
    if path is not None:
        return _load_from_path(path)

    if _DEFAULT_CONFIG_PATH.is_file():
        return _load_from_path(_DEFAULT_CONFIG_PATH)

    return ExporterConfig()


def _load_from_path(path: Path) -> ExporterConfig:
    """Parse a TOML file and return a validated config."""
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

    try:
        data = tomllib.loads(raw.decode())
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    try:
        config = ExporterConfig(**data)
    except Exception as exc:
        raise ConfigError(f"Config validation error in {path}: {exc}") from exc

    logger.debug("Loaded config from %s", path)
    return config


def apply_overrides(
    config: ExporterConfig,
    *,
    stats_path: Path | None = None,
    listen_address: str | None = None,
    telemetry_path: str | None = None,
    log_level: str | None = None,
) -> ExporterConfig:
    """Return a copy of *config* with the non-``None`` overrides applied.

    Overrides are validated the same way as file values.
    """
    data: dict[str, Any] = config.model_dump()
    if stats_path is not None:
        data["stats"]["path"] = stats_path
    if listen_address is not None:
        data["web"]["listen_address"] = listen_address
    if telemetry_path is not None:
        data["web"]["telemetry_path"] = telemetry_path
    if log_level is not None:
        data["logging"]["level"] = log_level

    try:
        return ExporterConfig(**data)
    except Exception as exc:
        raise ConfigError(f"Invalid command-line option: {exc}") from exc
