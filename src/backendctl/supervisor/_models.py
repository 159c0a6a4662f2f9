"""Data models for the backend supervisor.

This module defines the value types returned to callers:
- ServerStatus: Derived status of the backend process
- StartResult / StopResult: Outcomes of lifecycle operations
- HealthResult: Detailed outcome of a single health probe
- ToolCall / ChatMessage: Normalized backend replies
- ServiceEventType / ServiceEvent: Lifecycle event records
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


@dataclass(frozen=True, slots=True)
class ServerStatus:
    """Snapshot of the backend process status.

    Derived on every status request, never stored.

    Attributes:
        running: True if a process is held and answers its health check.
        port: The configured backend port.
        pid: Process ID if a process is held, regardless of health.
    """

    running: bool
    port: int
    pid: int | None = None


@dataclass(frozen=True, slots=True)
class StartResult:
    """Outcome of a successful start."""

    pid: int
    message: str


@dataclass(frozen=True, slots=True)
class StopResult:
    """Outcome of a successful stop."""

    message: str


@dataclass(frozen=True, slots=True)
class HealthResult:
    """Detailed outcome of a health probe.

    Attributes:
        healthy: True only for a success status code.
        status_code: HTTP status of the response, if one was received.
        error: Description of the transport failure, if any.
    """

    healthy: bool
    status_code: int | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A named action with arguments extracted from a backend reply.

    Attributes:
        name: The tool name.
        arguments: The raw JSON arguments value, passed through untouched.
    """

    name: str
    arguments: Any  # pyright: ignore[reportExplicitAny]


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """A normalized backend reply.

    Attributes:
        content: The reply text.
        tool_calls: Tool calls in response order, or None when the reply
            carried none.
    """

    content: str
    tool_calls: tuple[ToolCall, ...] | None = None


class ServiceEventType(StrEnum):
    """Types of backend lifecycle events.

    - STARTED: Backend process has been spawned
    - HEALTHY: Backend answered its startup health check
    - STARTUP_FAILED: Backend never became healthy and was killed
    - STOPPED: Backend was stopped by request
    - EXITED: Backend was found to have exited on its own
    """

    STARTED = "started"
    HEALTHY = "healthy"
    STARTUP_FAILED = "startup_failed"
    STOPPED = "stopped"
    EXITED = "exited"


@dataclass(frozen=True, slots=True)
class ServiceEvent:
    """Immutable backend lifecycle event.

    Attributes:
        service_name: Name of the supervised backend.
        event_type: Type of lifecycle event.
        timestamp: ISO 8601 formatted timestamp.
        pid: Process ID if applicable.
        exit_code: Exit code if the process terminated.
        message: Optional human-readable message.
    """

    service_name: str
    event_type: ServiceEventType
    timestamp: str
    pid: int | None = None
    exit_code: int | None = None
    message: str | None = None
