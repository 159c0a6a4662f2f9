"""Process supervisor for the backend server.

This module provides the ProcessSupervisor class that owns the single
backend process handle and drives its Stopped/Running lifecycle.
"""

from __future__ import annotations

import subprocess
from contextlib import AsyncExitStack
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Self, final

import anyio
import anyio.abc
from anyio.streams.text import TextReceiveStream
from tenacity import AsyncRetrying, retry_if_result, stop_after_delay, wait_fixed

from backendctl.exceptions import (
    AlreadyRunningError,
    NotRunningError,
    PathResolutionError,
    SpawnError,
    StartupHealthCheckError,
    TerminationError,
)
from backendctl.utils import create_supervisor_logger

from ._models import (
    ServerStatus,
    ServiceEvent,
    ServiceEventType,
    StartResult,
    StopResult,
)
from ._output import LoggingOutputSink

if TYPE_CHECKING:
    from types import TracebackType

    from structlog.typing import FilteringBoundLogger

    from backendctl.config import BackendConfig

    from ._protocol import HealthChecker, OutputSink


def _get_timestamp() -> str:
    """Get current timestamp in ISO 8601 format."""
    import pendulum  # noqa: PLC0415

    return pendulum.now("UTC").to_iso8601_string()


def resolve_working_directory(configured: Path | None = None) -> Path:
    """Resolve the directory the backend is launched in.

    Args:
        configured: Explicit directory. When None, the parent of the
            current working directory is used.

    Returns:
        An existing directory.

    Raises:
        PathResolutionError: If the directory cannot be determined or does
            not exist.
    """
    if configured is not None:
        candidate = configured.expanduser()
    else:
        try:
            current = Path.cwd()
        except OSError as e:
            msg = f"Failed to get current directory: {e}"
            raise PathResolutionError(msg) from e

        candidate = current.parent
        if candidate == current:
            msg = f"Failed to find backend directory: {current} has no parent"
            raise PathResolutionError(msg, path=current)

    if not candidate.is_dir():
        msg = f"Backend directory does not exist: {candidate}"
        raise PathResolutionError(msg, path=candidate)

    return candidate


@final
class ProcessSupervisor:
    """Enforces the single-instance lifecycle of the backend process.

    The process handle is only reachable through start(), stop() and
    status(). Two anyio locks guard it: the transition lock makes start and
    stop mutually exclusive, and the state lock covers each read or write
    of the handle. status() takes only the state lock and never holds it
    across its health probe, so it may observe a process that is spawned
    but not yet confirmed healthy.

    Used as an async context manager, the supervisor drains the backend's
    captured stdout/stderr into the output sink and stops the backend on
    exit. Outside a context manager the backend's output is discarded
    rather than piped, so an unread pipe can never block it.
    """

    __slots__ = (
        "_config",
        "_exit_stack",
        "_logger",
        "_output_sink",
        "_probe",
        "_process",
        "_state_lock",
        "_task_group",
        "_transition_lock",
        "name",
    )

    def __init__(
        self,
        config: BackendConfig,
        probe: HealthChecker,
        output_sink: OutputSink | None = None,
        logger: FilteringBoundLogger | None = None,
        *,
        name: str = "backend",
    ) -> None:
        """Initialize the supervisor in the Stopped state.

        Args:
            config: Backend configuration.
            probe: Health check used to confirm startup and report status.
            output_sink: Sink for captured output and lifecycle events.
                Uses a LoggingOutputSink if None.
            logger: Logger for lifecycle transitions. Created from the
                config's logging settings if None.
            name: Name used in events and log entries.
        """
        self.name = name
        self._config = config
        self._probe = probe
        self._logger: FilteringBoundLogger = logger or create_supervisor_logger(
            config.logging
        )
        self._output_sink: OutputSink = output_sink or LoggingOutputSink(self._logger)
        self._process: anyio.abc.Process | None = None
        self._state_lock = anyio.Lock()
        self._transition_lock = anyio.Lock()
        self._task_group: anyio.abc.TaskGroup | None = None
        self._exit_stack: AsyncExitStack | None = None

    @property
    def port(self) -> int:
        """Return the configured backend port."""
        return self._config.port

    async def __aenter__(self) -> Self:
        """Open the task group used to drain backend output."""
        stack = AsyncExitStack()
        self._task_group = await stack.enter_async_context(anyio.create_task_group())
        self._exit_stack = stack
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Stop the backend if it is running and close the task group."""
        stack = self._exit_stack
        task_group = self._task_group
        try:
            with anyio.CancelScope(shield=True):
                await self.aclose()
        finally:
            self._exit_stack = None
            self._task_group = None
            if task_group is not None:
                task_group.cancel_scope.cancel()
            if stack is not None:
                _ = await stack.__aexit__(exc_type, exc_val, exc_tb)

    async def _emit_event(
        self,
        event_type: ServiceEventType,
        *,
        pid: int | None = None,
        exit_code: int | None = None,
        message: str | None = None,
    ) -> None:
        """Emit a lifecycle event to the output sink."""
        event = ServiceEvent(
            service_name=self.name,
            event_type=event_type,
            timestamp=_get_timestamp(),
            pid=pid,
            exit_code=exit_code,
            message=message,
        )
        try:  # noqa: SIM105
            await self._output_sink.write_event(self.name, event)
        except Exception:  # noqa: BLE001, S110
            # Output sink errors should not crash the supervisor
            pass

    async def _stream_output(
        self,
        stream: TextReceiveStream,
        pid: int,
        stream_name: Literal["stdout", "stderr"],
    ) -> None:
        """Forward captured output lines to the output sink until EOF."""
        try:
            async for chunk in stream:
                for raw_line in chunk.splitlines():
                    try:  # noqa: SIM105
                        await self._output_sink.write_line(
                            self.name, pid, stream_name, raw_line.rstrip("\r")
                        )
                    except Exception:  # noqa: BLE001, S110
                        # Output sink errors should not crash streaming
                        pass
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            # Stream closed, which is expected on process exit
            pass

    def _start_draining(self, process: anyio.abc.Process) -> None:
        if self._task_group is None:
            return
        if process.stdout is not None:
            self._task_group.start_soon(
                self._stream_output, TextReceiveStream(process.stdout), process.pid, "stdout"
            )
        if process.stderr is not None:
            self._task_group.start_soon(
                self._stream_output, TextReceiveStream(process.stderr), process.pid, "stderr"
            )

    async def _spawn(self, cwd: Path) -> anyio.abc.Process:
        command = self._config.launch_command
        # Output is only captured when a task group is there to drain it
        output = subprocess.PIPE if self._task_group is not None else subprocess.DEVNULL
        try:
            return await anyio.open_process(
                command,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=output,
                stderr=output,
            )
        except OSError as e:
            msg = f"Failed to start server: {e}"
            raise SpawnError(msg, command=command, cause=e) from e

    async def _wait_until_healthy(self, process: anyio.abc.Process) -> bool:
        """Poll the health probe until healthy, the deadline passes, or the process exits."""

        def keep_polling(healthy: bool) -> bool:  # noqa: FBT001
            return not healthy and process.returncode is None

        retrying = AsyncRetrying(
            retry=retry_if_result(keep_polling),
            stop=stop_after_delay(self._config.startup_timeout),
            wait=wait_fixed(self._config.health_poll_interval),
            sleep=anyio.sleep,
            retry_error_callback=lambda _state: False,
        )
        return await retrying(self._probe.is_healthy)

    async def _release(self, process: anyio.abc.Process) -> None:
        """Close the process pipes and reap it."""
        with anyio.CancelScope(shield=True):
            await process.aclose()

    async def _kill(self, process: anyio.abc.Process) -> int | None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await self._release(process)
        return process.returncode

    async def _terminate(self, process: anyio.abc.Process) -> int | None:
        """Send SIGTERM, then SIGKILL after the shutdown timeout, and reap."""
        try:
            process.terminate()
        except ProcessLookupError:
            # Process already exited
            await self._release(process)
            return process.returncode

        with anyio.move_on_after(self._config.shutdown_timeout):
            _ = await process.wait()

        if process.returncode is None:
            await self._logger.awarning(
                "backend_kill_after_timeout",
                pid=process.pid,
                timeout=self._config.shutdown_timeout,
            )
            return await self._kill(process)

        await self._release(process)
        return process.returncode

    async def _reap_if_exited(self) -> None:
        """Clear the handle if the process has exited on its own.

        Must be called with the state lock held.
        """
        process = self._process
        if process is None or process.returncode is None:
            return

        self._process = None
        await self._release(process)
        await self._logger.awarning(
            "backend_exited", pid=process.pid, exit_code=process.returncode
        )
        await self._emit_event(
            ServiceEventType.EXITED,
            pid=process.pid,
            exit_code=process.returncode,
            message="Exited without a stop request",
        )

    async def start(self) -> StartResult:
        """Start the backend and wait for it to report healthy.

        Returns:
            The process ID and a human-readable message.

        Raises:
            AlreadyRunningError: If a backend process is already held.
            PathResolutionError: If the working directory cannot be resolved.
            SpawnError: If the process cannot be launched.
            StartupHealthCheckError: If the backend never became healthy.
                The process has been killed and the handle cleared.
        """
        async with self._transition_lock:
            async with self._state_lock:
                await self._reap_if_exited()
                if self._process is not None:
                    msg = "Server is already running"
                    raise AlreadyRunningError(msg, pid=self._process.pid)

            cwd = resolve_working_directory(self._config.cwd)
            await self._logger.ainfo(
                "backend_starting", cwd=str(cwd), command=list(self._config.launch_command)
            )
            process = await self._spawn(cwd)
            pid = process.pid
            await self._logger.ainfo("backend_spawned", pid=pid)

            async with self._state_lock:
                self._process = process

            self._start_draining(process)
            await self._emit_event(
                ServiceEventType.STARTED,
                pid=pid,
                message=f"Started with command: {' '.join(self._config.launch_command)}",
            )

            if await self._wait_until_healthy(process):
                await self._logger.ainfo("backend_healthy", pid=pid)
                await self._emit_event(ServiceEventType.HEALTHY, pid=pid)
                return StartResult(
                    pid=pid, message=f"Server started successfully (PID: {pid})"
                )

            async with self._state_lock:
                if self._process is process:
                    self._process = None
            exit_code = await self._kill(process)

            await self._logger.aerror(
                "backend_startup_failed",
                pid=pid,
                exit_code=exit_code,
                timeout=self._config.startup_timeout,
            )
            await self._emit_event(
                ServiceEventType.STARTUP_FAILED,
                pid=pid,
                exit_code=exit_code,
                message="Health check failed after start",
            )
            msg = "Server failed to start properly"
            raise StartupHealthCheckError(msg, pid=pid, exit_code=exit_code)

    async def stop(self) -> StopResult:
        """Terminate the backend and reap it.

        The handle is cleared as soon as termination is requested, even if
        termination then fails.

        Returns:
            A human-readable message.

        Raises:
            NotRunningError: If no backend process is held.
            TerminationError: If the termination signal cannot be delivered.
        """
        async with self._transition_lock:
            async with self._state_lock:
                await self._reap_if_exited()
                process = self._process
                self._process = None

            if process is None:
                msg = "Server is not running"
                raise NotRunningError(msg)

            pid = process.pid
            try:
                exit_code = await self._terminate(process)
            except OSError as e:
                await self._logger.aerror("backend_stop_failed", pid=pid, error=str(e))
                msg = f"Failed to stop server: {e}"
                raise TerminationError(msg, pid=pid, cause=e) from e

            await self._logger.ainfo("backend_stopped", pid=pid, exit_code=exit_code)
            await self._emit_event(
                ServiceEventType.STOPPED,
                pid=pid,
                exit_code=exit_code,
                message="Stopped by request",
            )
            return StopResult(message="Server stopped successfully")

    async def status(self) -> ServerStatus:
        """Report whether the backend is running and reachable.

        "running" is re-derived from the health probe whenever a process is
        held. The pid is reported whenever a process is held, regardless of
        health.
        """
        async with self._state_lock:
            await self._reap_if_exited()
            pid = self._process.pid if self._process is not None else None

        running = await self._probe.is_healthy() if pid is not None else False
        return ServerStatus(running=running, port=self._config.port, pid=pid)

    def is_held(self) -> bool:
        """Return True if a process handle is currently held."""
        return self._process is not None

    async def aclose(self) -> None:
        """Stop the backend if a process is held."""
        if self._process is None:
            return
        try:
            _ = await self.stop()
        except NotRunningError:
            pass
