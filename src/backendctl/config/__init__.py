"""backendctl configuration.

This module provides the public API for configuration management: the
typed models for backend startup parameters and logging, and the loaders
that read them from TOML files and BACKENDCTL_* environment variables.

Example:
    >>> from backendctl.config import load_config
    >>> config = load_config()
    >>> config.port
    38080
"""

from backendctl.exceptions import ConfigError, ConfigLoadError

from ._load import load_config, safe_load_config
from ._loader import deep_merge, parse_env_vars, read_toml_file, set_nested_key
from ._models import (
    DEFAULT_COMMAND,
    DEFAULT_PORT,
    PORT_FLAG,
    BackendConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
)

__all__ = [
    "DEFAULT_COMMAND",
    "DEFAULT_PORT",
    "PORT_FLAG",
    "BackendConfig",
    "ConfigError",
    "ConfigLoadError",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "deep_merge",
    "load_config",
    "parse_env_vars",
    "read_toml_file",
    "safe_load_config",
    "set_nested_key",
]
