"""Caller-facing facade over the supervisor and relay.

The facade exposes the four operations a desktop shell invokes: start,
stop, status and send-message. Each is a thin wrapper that returns a
success value or raises a BackendctlError whose message is suitable for
display.
"""

from __future__ import annotations

from contextlib import AsyncExitStack
from typing import TYPE_CHECKING, Self, final

import httpx

from backendctl.utils import create_supervisor_logger

from ._health import HealthProbe
from ._relay import MessageRelay
from ._service import ProcessSupervisor

if TYPE_CHECKING:
    from types import TracebackType

    from structlog.typing import FilteringBoundLogger

    from backendctl.config import BackendConfig

    from ._models import ChatMessage, ServerStatus, StartResult, StopResult
    from ._protocol import OutputSink

_NOT_ENTERED = "BackendFacade has no HTTP client; enter it with 'async with' first"


@final
class BackendFacade:
    """The start/stop/status/send-message surface for a single backend.

    Use as an async context manager to own the shared HTTP client and the
    supervisor's output draining; the backend is stopped on exit. When no
    client is supplied, the facade creates one on entry and closes it on
    exit, so the components are only available while the facade is entered.

    Example:
        >>> async with BackendFacade(config) as facade:
        ...     result = await facade.start()
        ...     reply = await facade.send_message("hello")
    """

    __slots__ = (
        "_exit_stack",
        "_logger",
        "_output_sink",
        "_owns_client",
        "_probe",
        "_relay",
        "_supervisor",
        "config",
    )

    def __init__(
        self,
        config: BackendConfig,
        *,
        client: httpx.AsyncClient | None = None,
        output_sink: OutputSink | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Wire the probe, relay and supervisor for one backend.

        Args:
            config: Backend configuration.
            client: HTTP client shared by the probe and relay. If None, a
                client is created on entry and closed on exit.
            output_sink: Sink for captured backend output and events.
            logger: Logger for lifecycle and relay events.
        """
        self.config = config
        self._owns_client = client is None
        self._output_sink = output_sink
        self._logger: FilteringBoundLogger = logger or create_supervisor_logger(
            config.logging
        )
        self._exit_stack: AsyncExitStack | None = None
        self._probe: HealthProbe | None = None
        self._relay: MessageRelay | None = None
        self._supervisor: ProcessSupervisor | None = None
        if client is not None:
            self._wire(client)

    def _wire(self, client: httpx.AsyncClient | None) -> None:
        if client is None:
            self._probe = self._relay = self._supervisor = None
            return

        self._probe = HealthProbe(self.config, client)
        self._relay = MessageRelay(
            self.config, client, self._logger.bind(component="relay")
        )
        self._supervisor = ProcessSupervisor(
            self.config, self._probe, self._output_sink, self._logger
        )

    @property
    def probe(self) -> HealthProbe:
        """Return the health probe."""
        if self._probe is None:
            raise RuntimeError(_NOT_ENTERED)
        return self._probe

    @property
    def relay(self) -> MessageRelay:
        """Return the message relay."""
        if self._relay is None:
            raise RuntimeError(_NOT_ENTERED)
        return self._relay

    @property
    def supervisor(self) -> ProcessSupervisor:
        """Return the process supervisor."""
        if self._supervisor is None:
            raise RuntimeError(_NOT_ENTERED)
        return self._supervisor

    async def __aenter__(self) -> Self:
        stack = AsyncExitStack()
        if self._owns_client:
            self._wire(await stack.enter_async_context(httpx.AsyncClient()))
            stack.callback(self._wire, None)
        _ = await stack.enter_async_context(self.supervisor)
        self._exit_stack = stack
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        stack = self._exit_stack
        self._exit_stack = None
        if stack is not None:
            _ = await stack.__aexit__(exc_type, exc_val, exc_tb)

    async def start(self) -> StartResult:
        """Start the backend. See ProcessSupervisor.start."""
        return await self.supervisor.start()

    async def stop(self) -> StopResult:
        """Stop the backend. See ProcessSupervisor.stop."""
        return await self.supervisor.stop()

    async def status(self) -> ServerStatus:
        """Report backend status. See ProcessSupervisor.status."""
        return await self.supervisor.status()

    async def send_message(self, text: str) -> ChatMessage:
        """Relay one message. See MessageRelay.send_message."""
        return await self.relay.send_message(text)
