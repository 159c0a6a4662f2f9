from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

from pydantic import ValidationError

from backendctl.exceptions import ConfigError, ConfigLoadError

from ._loader import deep_merge, parse_env_vars, read_toml_file
from ._models import BackendConfig

if TYPE_CHECKING:
    from pathlib import Path


def load_config(
    config_path: Path | None = None,
    *,
    include_env: bool = True,
) -> BackendConfig:
    """Load backend configuration from a TOML file and the environment.

    Environment variables (BACKENDCTL_*) take precedence over file values,
    which take precedence over the model defaults.

    Args:
        config_path: Optional path to a TOML config file.
        include_env: Whether to apply BACKENDCTL_* environment overrides.

    Returns:
        The validated configuration.

    Raises:
        FileNotFoundError: If config_path does not exist.
        ConfigLoadError: If the file cannot be parsed or values are invalid.
    """
    data: dict[str, object] = {}
    if config_path is not None:
        data = read_toml_file(config_path)
    if include_env:
        data = deep_merge(data, parse_env_vars())

    try:
        return BackendConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid configuration: {e}"
        raise ConfigLoadError(msg, path=config_path) from e


def safe_load_config(
    config_path: Path | None = None,
) -> tuple[BackendConfig, str | None]:
    """Load configuration with error handling.

    Attempts to load configuration and handles errors based on the
    BACKENDCTL_STRICT_CONFIG environment variable:
    - If unset or "0": warn to stderr and return default config
    - If "1": fail fast with sys.exit(1)

    When config_path is provided, the file must exist (explicit user request).

    Args:
        config_path: Explicit path to config file (--config flag).

    Returns:
        Tuple of (BackendConfig, error_message). On success, error_message
        is None. On failure (non-strict mode), returns default config with
        the error message.
    """
    strict_mode = os.environ.get("BACKENDCTL_STRICT_CONFIG", "0") == "1"

    if config_path is not None and not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    try:
        config = load_config(config_path)
    except (ConfigError, OSError) as e:
        error_msg = str(e)
        if strict_mode:
            print(f"Error: {error_msg}", file=sys.stderr)  # noqa: T201
            sys.exit(1)
        print(f"Warning: Failed to load config: {error_msg}", file=sys.stderr)  # noqa: T201
        return BackendConfig(), error_msg
    else:
        return config, None
