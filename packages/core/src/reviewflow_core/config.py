import os
from pathlib import Path
from typing import Optional

import yaml

from reviewflow_core.errors import ConfigError

DEFAULT_CONFIG_PATH = "~/.reviewflow/platform.yml"

DEFAULT_CONFIG: dict = {
    "git_server_addr": None,
    "git_remote_name": None,
    "git_api_url": None,  # GitHub-compatible REST API of the platform git server
    "p4_server_addr": None,
    "p4_remote_name": None,
    "p4_remote_depot_name": None,
    "service_url": None,
    "service_timeout": 300,
    "review_remote": "reviewflow",  # local name of the review mirror remote
    "format": "json-pretty",
}


def load_config(config_path: str = DEFAULT_CONFIG_PATH, cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. The platform YAML file (``~/.reviewflow/platform.yml`` by default)
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path).expanduser()
    if path.exists():
        with open(path) as f:
            try:
                file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Could not parse {path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"{path} must contain a YAML mapping.")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["token"] = os.environ.get("REVIEWFLOW_TOKEN")

    return config


class PlatformConfig:
    """Typed, fail-fast access to the platform settings.

    Every accessor raises ConfigError when its key is unset, so a review
    never starts against a half-configured platform.
    """

    def __init__(self, config: dict):
        self._config = config

    def _require(self, key: str) -> str:
        value = self._config.get(key)
        if not value:
            raise ConfigError(f"'{key}' is not set in the platform configuration.")
        return str(value)

    def git_server_addr(self) -> str:
        return self._require("git_server_addr")

    def git_remote_name(self) -> str:
        return self._require("git_remote_name")

    def p4_server_addr(self) -> str:
        return self._require("p4_server_addr")

    def p4_remote_name(self) -> str:
        return self._require("p4_remote_name")

    def p4_remote_depot_name(self) -> str:
        return self._require("p4_remote_depot_name")

    def service_url(self) -> str:
        return self._require("service_url").rstrip("/")

    def service_timeout(self) -> float:
        try:
            return float(self._config.get("service_timeout", 300))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"'service_timeout' must be a number: {e}") from e

    def review_remote(self) -> str:
        return str(self._config.get("review_remote") or "reviewflow")
