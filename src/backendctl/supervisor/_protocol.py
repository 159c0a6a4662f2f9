"""Protocol definitions for the supervisor system.

This module defines the interfaces that decouple the supervisor core from
its collaborators:
- OutputSink: Consumer of captured backend output and lifecycle events
- HealthChecker: Readiness check used to confirm startup
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ._models import ServiceEvent


@runtime_checkable
class OutputSink(Protocol):
    """Protocol for consuming backend output lines and events.

    Implementations must handle:
    - Captured output lines (stdout/stderr)
    - Lifecycle events
    """

    async def write_line(
        self,
        service_name: str,
        pid: int,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        """Write a line of backend output.

        Args:
            service_name: Name of the backend that produced the output.
            pid: Process ID of the backend.
            stream: Which output stream the line came from.
            line: The output line (without trailing newline).
        """
        ...

    async def write_event(
        self,
        service_name: str,
        event: ServiceEvent,
    ) -> None:
        """Write a backend lifecycle event.

        Args:
            service_name: Name of the backend that generated the event.
            event: The lifecycle event to record.
        """
        ...


@runtime_checkable
class HealthChecker(Protocol):
    """Protocol for backend readiness checks."""

    async def is_healthy(self) -> bool:
        """Return True if the backend is ready to serve requests."""
        ...
