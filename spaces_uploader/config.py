"""Configuration loading for the uploader.

Supports two configuration sources:
1. Environment variables (for CI/CD) - take priority, field by field
2. config.json file (for local development)

Environment Variables:
    SPACES_NAME=my-space
    SPACES_ENDPOINT=https://nyc3.digitaloceanspaces.com
    SPACES_REGION=nyc3
    SPACES_ACCESS_KEY=xxx
    SPACES_SECRET_KEY=xxx
    SPACES_MAX_PART_RETRY=3
    SPACES_MAX_PART_SIZE=6000000

config.json:
    {
        "space_name": "my-space",
        "endpoint_url": "https://nyc3.digitaloceanspaces.com",
        "access_key": "xxx",
        "secret_key": "xxx",
        "max_part_retry": 3,
        "max_part_size": 6000000,
        "retry_delays": [1, 2, 4]
    }

Keys may be left out of both; the CLI then prompts for them.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from spaces_uploader.multipart import DEFAULT_MAX_PART_RETRY, DEFAULT_MAX_PART_SIZE
from spaces_uploader.uploader import DEFAULT_ENDPOINT


class ConfigError(Exception):
    """Raised when configuration loading fails."""

    pass


# Environment variable for each setting
ENV_VARS = {
    "space_name": "SPACES_NAME",
    "endpoint_url": "SPACES_ENDPOINT",
    "region_name": "SPACES_REGION",
    "access_key": "SPACES_ACCESS_KEY",
    "secret_key": "SPACES_SECRET_KEY",
    "max_part_retry": "SPACES_MAX_PART_RETRY",
    "max_part_size": "SPACES_MAX_PART_SIZE",
}

INT_FIELDS = ("max_part_retry", "max_part_size")


@dataclass
class SpacesSettings:
    """Settings for one space."""

    space_name: str
    endpoint_url: str = DEFAULT_ENDPOINT
    region_name: Optional[str] = None
    access_key: Optional[str] = field(default=None, repr=False)
    secret_key: Optional[str] = field(default=None, repr=False)
    max_part_retry: int = DEFAULT_MAX_PART_RETRY
    max_part_size: int = DEFAULT_MAX_PART_SIZE
    retry_delays: tuple = ()


def load_from_json(config_path: str) -> dict:
    """Load raw settings from a JSON file.

    Args:
        config_path: Path to the config.json file.

    Returns:
        Dictionary of settings found in the file.

    Raises:
        ConfigError: If file doesn't exist, contains invalid JSON,
                    or is not a JSON object.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object")

    return data


def load_from_env() -> dict:
    """Load raw settings from SPACES_* environment variables.

    Returns:
        Dictionary of settings that have a non-empty variable set.
    """
    values = {}
    for name, env_key in ENV_VARS.items():
        env_value = os.environ.get(env_key)
        if env_value:
            values[name] = env_value
    return values


def _to_int(name: str, value) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid integer for '{name}': {value!r}") from e
    if number < 1:
        raise ConfigError(f"'{name}' must be >= 1, got {number}")
    return number


def load_settings(config_path: str = "config.json") -> SpacesSettings:
    """Load settings with environment priority.

    Priority order per field:
    1. Environment variables
    2. config.json file (if it exists)
    3. Defaults

    Args:
        config_path: Path to config.json (used as fallback).

    Returns:
        The merged SpacesSettings.

    Raises:
        ConfigError: If no space name is configured or a value is invalid.
    """
    values: dict = {}

    if Path(config_path).exists():
        values.update(load_from_json(config_path))
    values.update(load_from_env())

    space_name = values.get("space_name")
    if not space_name:
        raise ConfigError(
            "No space configured. Set SPACES_NAME or add 'space_name' to "
            f"{config_path}."
        )

    settings = SpacesSettings(space_name=space_name)

    if values.get("endpoint_url"):
        settings.endpoint_url = values["endpoint_url"]
    settings.region_name = values.get("region_name") or None
    settings.access_key = values.get("access_key") or None
    settings.secret_key = values.get("secret_key") or None

    for name in INT_FIELDS:
        if name in values:
            setattr(settings, name, _to_int(name, values[name]))

    delays = values.get("retry_delays", ())
    if not isinstance(delays, (list, tuple)):
        raise ConfigError("'retry_delays' must be a list of seconds")
    try:
        settings.retry_delays = tuple(float(d) for d in delays)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid 'retry_delays': {delays!r}") from e

    return settings
