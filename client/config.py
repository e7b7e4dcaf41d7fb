from __future__ import annotations
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from shared.errors import ConfigError
from shared.log import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".lanchat" / "config.yaml"

_ENV_OVERRIDES = {
    "LANCHAT_SERVER": "server_url",
    "LANCHAT_POLL_INTERVAL": "poll_interval",
    "LANCHAT_TIMEOUT": "request_timeout",
    "LANCHAT_LOG_LEVEL": "log_level",
}


@dataclass(frozen=True)
class ClientConfig:
    server_url: str = "http://localhost:8080"
    poll_interval: float = 2.0      # seconds between ticks
    request_timeout: float = 1.5    # must stay below poll_interval
    log_level: str = "INFO"

    def validate(self) -> "ClientConfig":
        if not self.server_url.startswith(("http://", "https://")):
            raise ConfigError(f"server_url must be an http(s) URL, got {self.server_url!r}")
        if self.poll_interval <= 0:
            raise ConfigError("poll_interval must be positive")
        if not 0 < self.request_timeout < self.poll_interval:
            raise ConfigError(
                f"request_timeout ({self.request_timeout}) must be positive and shorter "
                f"than poll_interval ({self.poll_interval})"
            )
        return self

    def with_overrides(self, **overrides: Any) -> "ClientConfig":
        """Copy with every non-None override applied, then validate."""
        values = {k: v for k, v in overrides.items() if v is not None}
        return _coerce(replace(self, **values)).validate() if values else self.validate()


def _coerce(config: ClientConfig) -> ClientConfig:
    try:
        return ClientConfig(
            server_url=str(config.server_url),
            poll_interval=float(config.poll_interval),
            request_timeout=float(config.request_timeout),
            log_level=str(config.log_level).upper(),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration value: {exc}") from exc


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.debug("No config file at %s; using defaults", path)
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Cannot parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    known = {f.name for f in fields(ClientConfig)}
    unknown = set(data) - known
    if unknown:
        logger.warning("Ignoring unknown config keys in %s: %s", path, sorted(unknown))
    return {k: v for k, v in data.items() if k in known}


def load_config(path: Optional[Path] = None) -> ClientConfig:
    """
    Build the client configuration.

    Precedence, lowest first: defaults, YAML file, LANCHAT_* environment.
    """
    values = _read_yaml(path or DEFAULT_CONFIG_PATH)
    for env_name, field_name in _ENV_OVERRIDES.items():
        env_value = os.getenv(env_name)
        if env_value:
            values[field_name] = env_value
    config = _coerce(ClientConfig(**values))
    return config.validate()
