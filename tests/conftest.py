"""Shared test fixtures for backendctl tests."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Literal

import pytest
import structlog
from structlog.testing import CapturingLogger

from backendctl.config import BackendConfig

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from backendctl.supervisor import ServiceEvent

SLEEPING_BACKEND = "import time; time.sleep(60)"


def python_command(code: str) -> tuple[str, ...]:
    """Build a backend command that runs a Python snippet."""
    return (sys.executable, "-c", code)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def backend_config(tmp_path: Path) -> BackendConfig:
    """Config for a sleeping Python child process with short timeouts."""
    return BackendConfig(
        command=python_command(SLEEPING_BACKEND),
        cwd=tmp_path,
        startup_timeout=0.5,
        health_poll_interval=0.05,
        shutdown_timeout=2.0,
    )


@dataclass
class StubProbe:
    """Health checker returning a configurable answer and counting calls."""

    healthy: bool = True
    calls: int = 0
    healthy_after: int | None = None

    async def is_healthy(self) -> bool:
        self.calls += 1
        if self.healthy_after is not None:
            return self.calls >= self.healthy_after
        return self.healthy


@dataclass
class RecordingSink:
    """Output sink that records everything it receives."""

    lines: list[tuple[Literal["stdout", "stderr"], str]] = field(default_factory=list)
    events: list[ServiceEvent] = field(default_factory=list)

    async def write_line(
        self,
        service_name: str,
        pid: int,
        stream: Literal["stdout", "stderr"],
        line: str,
    ) -> None:
        self.lines.append((stream, line))

    async def write_event(self, service_name: str, event: ServiceEvent) -> None:
        self.events.append(event)


@pytest.fixture
def stub_probe() -> StubProbe:
    return StubProbe()


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def capturing_logger() -> CapturingLogger:
    return CapturingLogger()


@pytest.fixture
def test_logger(capturing_logger: CapturingLogger) -> FilteringBoundLogger:
    """A standalone logger whose calls are recorded on capturing_logger."""
    return structlog.wrap_logger(
        capturing_logger,
        processors=[structlog.stdlib.add_log_level],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
    )
