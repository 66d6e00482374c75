# Copyright (c) Syntropy Systems
"""Configuration management for contribcheck."""
from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import cast

import yaml

from contribcheck.errors import ConfigurationError

CONFIG_FILENAME = "contribcheck.yaml"
MIN_REPEAT_COUNT = 2


@dataclass
class ContribCheckConfig:
    """Configuration for contribcheck."""

    # Repository service base URL
    server_url: str = "https://localhost:4242"

    # Client certificate exported from the Qlik Sense certificate store (PEM)
    client_cert: str | None = None
    client_key: str | None = None

    # Server verification; ca_cert None means the system trust store
    ca_cert: str | None = None
    verify_server: bool = False

    # Request timeout in seconds
    timeout: float = 300.0

    # Identity used for the probe and the cache clear calls
    admin_identity: str = "INTERNAL\\sa_api"

    # Samples per condition in the optional feature strategy
    repeat_count: int = 6

    open_endpoint: str = "/qrs/app/{app_id}/open/full"
    count_endpoint: str = "/qrs/dataconnection/count"
    feature_endpoint: str = "/qrs/app/{app_id}?privileges={flag}"
    cache_clear_endpoint: str = "/qrs/systemrule/security/resetcache"

    def validate(self) -> None:
        """Raise ConfigurationError if values cannot drive a check."""
        if self.timeout <= 0:
            msg = f"timeout must be positive, got {self.timeout}"
            raise ConfigurationError(msg)
        if (self.client_cert is None) != (self.client_key is None):
            msg = "client_cert and client_key must be configured together"
            raise ConfigurationError(msg)

    def validate_repeat_count(self) -> None:
        """Raise ConfigurationError if repeat_count cannot be averaged."""
        if self.repeat_count < MIN_REPEAT_COUNT:
            msg = (
                f"repeat_count must be at least {MIN_REPEAT_COUNT}, "
                f"got {self.repeat_count}"
            )
            raise ConfigurationError(msg)


def get_global_config_dir() -> Path:
    """Get the global contribcheck config directory (~/.contribcheck)."""
    return Path.home() / ".contribcheck"


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find the config file to use.

    Looks in:
    1. ./contribcheck.yaml (relative to start_path)
    2. ~/.contribcheck/config.yaml
    """
    if start_path is None:
        start_path = Path.cwd()

    local_config = start_path / CONFIG_FILENAME
    if local_config.is_file():
        return local_config

    global_config = get_global_config_dir() / "config.yaml"
    if global_config.is_file():
        return global_config

    return None


def _apply(config: ContribCheckConfig, data: dict[str, object]) -> None:
    for field in fields(config):
        if field.name not in data:
            continue
        value = data[field.name]
        default = cast("object", getattr(config, field.name))
        if isinstance(default, bool):
            if isinstance(value, bool):
                setattr(config, field.name, value)
        elif isinstance(default, float):
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                setattr(config, field.name, float(value))
        elif isinstance(default, int):
            if isinstance(value, int) and not isinstance(value, bool):
                setattr(config, field.name, value)
        elif isinstance(value, str):
            # str fields and the optional certificate paths
            setattr(config, field.name, value)


def load_config(config_path: Path | None = None) -> ContribCheckConfig:
    """Load configuration from YAML or defaults.

    An explicit ``config_path`` must exist. Otherwise the file found by
    ``find_config_file`` is used, falling back to defaults. Unknown keys
    and wrongly typed values are ignored.
    """
    config = ContribCheckConfig()

    if config_path is not None:
        if not config_path.is_file():
            msg = f"Config file not found: {config_path}"
            raise ConfigurationError(msg)
    else:
        config_path = find_config_file()

    if config_path is not None:
        try:
            with config_path.open() as f:
                raw = cast("object", yaml.safe_load(f) or {})
        except (OSError, yaml.YAMLError) as e:
            msg = f"Could not read config file {config_path}: {e}"
            raise ConfigurationError(msg) from e
        if not isinstance(raw, dict):
            msg = f"Config file {config_path} must contain a mapping"
            raise ConfigurationError(msg)
        _apply(config, cast("dict[str, object]", raw))

    return config
