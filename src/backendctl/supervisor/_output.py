"""Output sink implementations for the supervisor system.

This module provides concrete implementations of the OutputSink protocol
for consuming captured backend output and lifecycle events.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Literal, final

from rich.console import Console
from rich.text import Text

from ._models import ServiceEventType

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._models import ServiceEvent


@final
class LoggingOutputSink:
    """Output sink that forwards backend output and events to structlog.

    stdout lines are logged at debug level and stderr lines at info level,
    so that a default INFO logger still surfaces backend diagnostics.
    """

    __slots__ = ("_logger",)

    def __init__(self, logger: FilteringBoundLogger) -> None:
        """Initialize the output sink.

        Args:
            logger: Logger that receives output lines and events.
        """
        self._logger = logger

    async def write_line(
        self,
        service_name: str,
        pid: int,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        """Log a line of backend output."""
        if stream == "stderr":
            await self._logger.ainfo(
                "backend_output", service=service_name, pid=pid, stream=stream, line=line
            )
        else:
            await self._logger.adebug(
                "backend_output", service=service_name, pid=pid, stream=stream, line=line
            )

    async def write_event(
        self,
        service_name: str,
        event: ServiceEvent,
    ) -> None:
        """Log a backend lifecycle event."""
        await self._logger.ainfo(
            f"backend_{event.event_type.value}",
            service=service_name,
            pid=event.pid,
            exit_code=event.exit_code,
            message=event.message,
            event_timestamp=event.timestamp,
        )


@final
class ConsoleOutputSink:
    """Output sink that echoes backend output to a rich console.

    Lines are printed as `name[pid] stdout| text`. stderr lines are dimmed
    red so backend diagnostics stand out. Lifecycle events are printed on
    their own line, colored by event type.
    """

    __slots__ = ("_console", "_show_stdout")

    _EVENT_STYLES: ClassVar[dict[ServiceEventType, str]] = {
        ServiceEventType.STARTED: "cyan",
        ServiceEventType.HEALTHY: "bold green",
        ServiceEventType.STARTUP_FAILED: "bold red",
        ServiceEventType.STOPPED: "yellow",
        ServiceEventType.EXITED: "magenta",
    }

    def __init__(self, console: Console | None = None, *, show_stdout: bool = True) -> None:
        """Initialize the output sink.

        Args:
            console: Console to print to. A stdout console is created if None.
            show_stdout: Print stdout lines. stderr lines are always printed.
        """
        self._console = console or Console()
        self._show_stdout = show_stdout

    async def write_line(
        self,
        service_name: str,
        pid: int,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        """Print a line of backend output."""
        if stream == "stdout" and not self._show_stdout:
            return

        text = Text.assemble(
            (f"{service_name}[{pid}]", "bold blue"),
            (f" {stream}| ", "dim"),
            (line, "dim red" if stream == "stderr" else ""),
        )
        self._console.print(text)

    async def write_event(
        self,
        service_name: str,
        event: ServiceEvent,
    ) -> None:
        """Print a backend lifecycle event."""
        details = [f"pid={event.pid}"] if event.pid is not None else []
        if event.exit_code is not None:
            details.append(f"exit_code={event.exit_code}")

        text = Text.assemble(
            (f"{service_name} ", "bold blue"),
            (event.event_type.value, self._EVENT_STYLES.get(event.event_type, "")),
        )
        if details:
            _ = text.append(f" ({', '.join(details)})", style="dim")
        if event.message:
            _ = text.append(f": {event.message}")
        self._console.print(text)
