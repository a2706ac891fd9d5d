"""
Configuration management for Songbook.

Settings come from a TOML file (the bundled `songbook.toml` by default) and
can be overridden through environment variables, which is how containers
usually configure the service.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Mapping

logger = logging.getLogger(__name__)

# Path to the config directory
CONFIG_DIR = Path(__file__).parent


class ConfigError(ValueError):
    """Raised when a configuration value cannot be used."""


@dataclass(frozen=True)
class ServiceConfig:
    """Loaded service configuration."""

    host: str = "0.0.0.0"
    port: int = 8080
    db_path: str = "songbook.sqlite3"
    # Empty URL disables enrichment.
    metadata_api_url: str = ""
    metadata_timeout_s: float = 10.0
    enrichment_workers: int = 2
    db_ping_interval_s: float = 10.0
    db_ping_max_failures: int = 10

    @property
    def enrichment_enabled(self) -> bool:
        return bool(self.metadata_api_url)


# environment variable -> (field, converter)
ENV_OVERRIDES: dict[str, tuple[str, Callable[[str], Any]]] = {
    "HOST": ("host", str),
    "PORT": ("port", int),
    "DB_PATH": ("db_path", str),
    "MUSIC_INFO_API_URL": ("metadata_api_url", str),
    "METADATA_TIMEOUT": ("metadata_timeout_s", float),
    "ENRICHMENT_WORKERS": ("enrichment_workers", int),
}


def _convert(key: str, value: Any, converter: Callable[[Any], Any]) -> Any:
    try:
        return converter(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from e


def _parse_sections(data: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten the TOML sections into ServiceConfig keyword arguments."""
    server = data.get("server", {})
    database = data.get("database", {})
    metadata = data.get("metadata", {})

    values: dict[str, Any] = {}
    if "host" in server:
        values["host"] = _convert("server.host", server["host"], str)
    if "port" in server:
        values["port"] = _convert("server.port", server["port"], int)
    if "path" in database:
        values["db_path"] = _convert("database.path", database["path"], str)
    if "ping_interval" in database:
        values["db_ping_interval_s"] = _convert(
            "database.ping_interval", database["ping_interval"], float
        )
    if "ping_max_failures" in database:
        values["db_ping_max_failures"] = _convert(
            "database.ping_max_failures", database["ping_max_failures"], int
        )
    if "api_url" in metadata:
        values["metadata_api_url"] = _convert("metadata.api_url", metadata["api_url"], str)
    if "timeout" in metadata:
        values["metadata_timeout_s"] = _convert("metadata.timeout", metadata["timeout"], float)
    if "workers" in metadata:
        values["enrichment_workers"] = _convert("metadata.workers", metadata["workers"], int)
    return values


def _validate(config: ServiceConfig) -> ServiceConfig:
    if not 0 < config.port < 65536:
        raise ConfigError(f"Invalid port: {config.port}")
    if config.metadata_timeout_s <= 0:
        raise ConfigError("metadata timeout must be > 0")
    if config.enrichment_workers < 1:
        raise ConfigError("enrichment workers must be >= 1")
    if config.db_ping_interval_s <= 0:
        raise ConfigError("database ping interval must be > 0")
    if config.db_ping_max_failures < 1:
        raise ConfigError("database ping max failures must be >= 1")
    return config


def load_config(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ServiceConfig:
    """
    Load service configuration.

    Args:
        config_path: Path to a TOML file. If None, uses the bundled default.
        environ: Environment mapping for overrides (defaults to os.environ).

    Returns:
        Loaded ServiceConfig instance.
    """
    if config_path is None:
        config_path = CONFIG_DIR / "songbook.toml"

    logger.debug("Loading config from %s", config_path)

    with config_path.open("rb") as f:
        data = tomllib.load(f)

    config = ServiceConfig(**_parse_sections(data))

    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for var, (field_name, converter) in ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw:
            overrides[field_name] = _convert(var, raw, converter)
    if overrides:
        logger.debug("Config overridden from environment: %s", ", ".join(sorted(overrides)))
        config = replace(config, **overrides)

    return _validate(config)
