"""Configuration models for backendctl.

This module defines the Pydantic models for the fixed startup parameters
of the backend process and the logging settings.
"""

from enum import StrEnum
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PORT = 38080

PORT_FLAG = "--api-port"

DEFAULT_COMMAND: tuple[str, ...] = (
    "npm",
    "start",
    "--",
    "--server-only",
    PORT_FLAG,
    str(DEFAULT_PORT),
    "--no_ui_output",
)


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""


class BackendConfig(BaseModel):
    """Startup and connection parameters for the supervised backend.

    Attributes:
        host: Host the backend listens on.
        port: Port the backend API listens on.
        command: Command and arguments used to launch the backend.
        cwd: Working directory for the backend. When None, the parent of
            the supervisor's current working directory is used.
        health_path: Path of the health endpoint.
        generate_path: Path of the generation endpoint.
        health_timeout: Seconds before a single health probe gives up.
        startup_timeout: Seconds to wait for the backend to become healthy.
        health_poll_interval: Seconds between health probes during startup.
        shutdown_timeout: Seconds to wait after SIGTERM before SIGKILL.
        request_timeout: Seconds before a relayed generation request gives up.
        logging: Logging settings.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    host: str = "127.0.0.1"
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    command: tuple[str, ...] = Field(default=DEFAULT_COMMAND, min_length=1)
    cwd: Path | None = None
    health_path: str = "/healthz"
    generate_path: str = "/v1/generate"
    health_timeout: float = Field(default=2.0, gt=0)
    startup_timeout: float = Field(default=3.0, gt=0)
    health_poll_interval: float = Field(default=0.25, gt=0)
    shutdown_timeout: float = Field(default=5.0, gt=0)
    request_timeout: float = Field(default=120.0, gt=0)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def base_url(self) -> str:
        """Return the base URL of the backend HTTP API."""
        return f"http://{self.host}:{self.port}"

    @property
    def launch_command(self) -> tuple[str, ...]:
        """Return the command with its --api-port value set to the configured port.

        Commands without the flag are returned unchanged.
        """
        args = list(self.command)
        for index, arg in enumerate(args):
            if arg == PORT_FLAG and index + 1 < len(args):
                args[index + 1] = str(self.port)
            elif arg.startswith(f"{PORT_FLAG}="):
                args[index] = f"{PORT_FLAG}={self.port}"
        return tuple(args)
