"""Configuration loading, validation and secret lookup."""

import os
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import ValidationError

from tabletalk.config.schema import TabletalkConfig


DEFAULT_CONFIG_PATH = Path.home() / ".tabletalk" / "tabletalk.yaml"


class ConfigError(Exception):
    """Configuration loading or validation error."""


def load_config(path: Optional[Path] = None) -> TabletalkConfig:
    """Load and validate Tabletalk configuration from YAML file.

    Args:
        path: Path to config file. If None, tries default location.
              If file doesn't exist, returns default config.

    Returns:
        Validated configuration object

    Raises:
        ConfigError: If config file exists but is invalid
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH

    # Zero-config mode: if file doesn't exist, use all defaults
    if not path.exists():
        return TabletalkConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)

        # Handle empty file
        if config_data is None:
            return TabletalkConfig()

        return TabletalkConfig(**config_data)

    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e
    except Exception as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e


def save_config(config: TabletalkConfig, path: Optional[Union[str, Path]] = None) -> None:
    """Save configuration to YAML file.

    Args:
        config: Configuration object to save
        path: Destination path (string or Path object). If None, uses default location.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH
    elif isinstance(path, str):
        path = Path(path)

    path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump()

    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(
            config_dict, f, default_flow_style=False, sort_keys=False, allow_unicode=True
        )


def read_override_file(path: Union[str, Path]) -> dict[str, str]:
    """Parse a local ``KEY=VALUE`` override file.

    Blank values and lines without ``=`` are skipped. Everything after the
    first ``=`` is the value, so values may themselves contain ``=``.

    Args:
        path: Path to the override file

    Returns:
        Mapping of keys to values (empty if the file does not exist)
    """
    path = Path(path)
    if not path.exists():
        return {}

    values: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        key, sep, value = line.partition("=")
        key, value = key.strip(), value.strip()
        if sep and key and value:
            values[key] = value
    return values


def resolve_secret(env_name: str, override_file: Optional[Union[str, Path]] = None) -> str:
    """Look up a credential from the environment or the local override file.

    Args:
        env_name: Environment variable name
        override_file: Optional KEY=VALUE file consulted when the variable is unset

    Returns:
        The credential value

    Raises:
        ConfigError: If the credential is not set anywhere
    """
    value = os.environ.get(env_name)
    if value:
        return value

    if override_file is not None:
        value = read_override_file(override_file).get(env_name)
        if value:
            return value

    raise ConfigError(f"Missing credential: {env_name}")
