"""backendctl exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class BackendctlError(Exception):
    """Base exception for backendctl errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(BackendctlError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


# =============================================================================
# Supervisor Exceptions
# =============================================================================


class SupervisorError(BackendctlError):
    """Base exception for backend process lifecycle errors."""


class AlreadyRunningError(SupervisorError):
    """Raised when start is requested while a backend process is held."""

    def __init__(self, message: str, *, pid: int | None = None) -> None:
        """Initialize with error message and the running process ID.

        Args:
            message: Human-readable error message.
            pid: Process ID of the backend that is already running.
        """
        super().__init__(message)
        self.pid: int | None = pid


class NotRunningError(SupervisorError):
    """Raised when stop is requested while no backend process is held."""


class PathResolutionError(SupervisorError):
    """Raised when the backend working directory cannot be determined.

    Attributes:
        path: The path that was being resolved, if known.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The path that was being resolved, if known.
        """
        super().__init__(message)
        self.path: Path | None = path


class SpawnError(SupervisorError):
    """Raised when the backend process cannot be launched.

    Attributes:
        command: The command that failed to launch.
        cause: The underlying OS error.
    """

    def __init__(
        self,
        message: str,
        *,
        command: tuple[str, ...] = (),
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and launch context.

        Args:
            message: Human-readable error message.
            command: The command that failed to launch.
            cause: The underlying OS error.
        """
        super().__init__(message)
        self.command: tuple[str, ...] = command
        self.cause: Exception | None = cause


class StartupHealthCheckError(SupervisorError):
    """Raised when a spawned backend never reports healthy.

    The process has already been terminated and reaped when this is raised.
    """

    def __init__(
        self,
        message: str,
        *,
        pid: int | None = None,
        exit_code: int | None = None,
    ) -> None:
        """Initialize with error message and process context.

        Args:
            message: Human-readable error message.
            pid: Process ID of the terminated backend.
            exit_code: Exit code of the backend after termination, if known.
        """
        super().__init__(message)
        self.pid: int | None = pid
        self.exit_code: int | None = exit_code


class TerminationError(SupervisorError):
    """Raised when the termination signal cannot be delivered.

    Attributes:
        pid: Process ID of the backend.
        cause: The underlying OS error.
    """

    def __init__(
        self,
        message: str,
        *,
        pid: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and process context.

        Args:
            message: Human-readable error message.
            pid: Process ID of the backend.
            cause: The underlying OS error.
        """
        super().__init__(message)
        self.pid: int | None = pid
        self.cause: Exception | None = cause


# =============================================================================
# Relay Exceptions
# =============================================================================


class RelayError(BackendctlError):
    """Base exception for message relay errors."""


class TransportError(RelayError):
    """Raised when the backend cannot be reached.

    Attributes:
        url: The URL that was requested.
        cause: The underlying transport exception.
    """

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and request context.

        Args:
            message: Human-readable error message.
            url: The URL that was requested.
            cause: The underlying transport exception.
        """
        super().__init__(message)
        self.url: str | None = url
        self.cause: Exception | None = cause


class ServerError(RelayError):
    """Raised when the backend answers with a non-success status.

    Attributes:
        status_code: The HTTP status code returned by the backend.
    """

    def __init__(self, message: str, *, status_code: int) -> None:
        """Initialize with error message and HTTP status.

        Args:
            message: Human-readable error message.
            status_code: The HTTP status code returned by the backend.
        """
        super().__init__(message)
        self.status_code: int = status_code


class DecodeError(RelayError):
    """Raised when the backend response body is not valid JSON."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        """Initialize with error message and decode failure.

        Args:
            message: Human-readable error message.
            cause: The underlying decode exception.
        """
        super().__init__(message)
        self.cause: Exception | None = cause
