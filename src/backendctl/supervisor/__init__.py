"""Supervisor package for managing the backend server process.

This package starts a single backend process, confirms it becomes healthy,
stops it cleanly, reports its status, and relays chat requests to it.

Key Components:
    - HealthProbe: Bounded-timeout readiness check
    - MessageRelay: Forwards a chat turn and normalizes the reply
    - ProcessSupervisor: Single-instance process lifecycle
    - BackendFacade: The start/stop/status/send-message surface
    - create_control_router: FastAPI endpoint factory
    - LoggingOutputSink / ConsoleOutputSink: Captured output consumers

Example:
    >>> from backendctl.config import load_config
    >>> from backendctl.supervisor import BackendFacade
    >>> async with BackendFacade(load_config()) as facade:
    ...     await facade.start()
    ...     status = await facade.status()
"""

from ._api import create_control_router
from ._facade import BackendFacade
from ._health import HealthProbe
from ._models import (
    ChatMessage,
    HealthResult,
    ServerStatus,
    ServiceEvent,
    ServiceEventType,
    StartResult,
    StopResult,
    ToolCall,
)
from ._output import ConsoleOutputSink, LoggingOutputSink
from ._protocol import HealthChecker, OutputSink
from ._relay import NO_RESPONSE_PLACEHOLDER, MessageRelay, parse_reply
from ._service import ProcessSupervisor, resolve_working_directory

__all__ = [
    "NO_RESPONSE_PLACEHOLDER",
    "BackendFacade",
    "ChatMessage",
    "ConsoleOutputSink",
    "HealthChecker",
    "HealthProbe",
    "HealthResult",
    "LoggingOutputSink",
    "MessageRelay",
    "OutputSink",
    "ProcessSupervisor",
    "ServerStatus",
    "ServiceEvent",
    "ServiceEventType",
    "StartResult",
    "StopResult",
    "ToolCall",
    "create_control_router",
    "parse_reply",
    "resolve_working_directory",
]
