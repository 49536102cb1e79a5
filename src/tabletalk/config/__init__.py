"""Configuration schema and loading."""

from .loader import ConfigError, load_config, resolve_secret, save_config
from .schema import TabletalkConfig

__all__ = [
    "ConfigError",
    "TabletalkConfig",
    "load_config",
    "resolve_secret",
    "save_config",
]
