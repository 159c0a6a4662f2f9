"""FastAPI control endpoints for the backend facade.

This module exposes the facade operations over HTTP so a desktop shell can
drive the backend and render results.
"""

# pyright: reportUnusedFunction=false
# FastAPI route handlers are registered via decorators, not direct calls

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Never

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from backendctl.exceptions import (
    AlreadyRunningError,
    NotRunningError,
    RelayError,
    SupervisorError,
)

if TYPE_CHECKING:
    from ._facade import BackendFacade
    from ._models import ChatMessage


class StartResponse(BaseModel):
    """Response model for a successful start."""

    pid: int
    message: str


class MessageResponse(BaseModel):
    """Response model for simple message responses."""

    message: str


class ServerStatusResponse(BaseModel):
    """Response model for backend status."""

    running: bool
    port: int
    pid: int | None


class ToolCallResponse(BaseModel):
    """Response model for a single tool call."""

    name: str
    arguments: Any  # pyright: ignore[reportExplicitAny]


class ChatMessageResponse(BaseModel):
    """Response model for a relayed backend reply."""

    content: str
    tool_calls: list[ToolCallResponse] | None


class SendMessageRequest(BaseModel):
    """Request model for relaying a message."""

    text: str


def _build_chat_response(message: ChatMessage) -> ChatMessageResponse:
    tool_calls = (
        [ToolCallResponse(name=call.name, arguments=call.arguments) for call in message.tool_calls]
        if message.tool_calls is not None
        else None
    )
    return ChatMessageResponse(content=message.content, tool_calls=tool_calls)


def _raise_conflict(cause: Exception) -> Never:
    """Raise HTTP 409 for a rejected lifecycle transition.

    Args:
        cause: The original exception.

    Raises:
        HTTPException: Always raises with 409 status.
    """
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=str(cause),
    ) from cause


def _raise_server_error(cause: Exception) -> Never:
    """Raise HTTP 500 for internal server error.

    Args:
        cause: The original exception.

    Raises:
        HTTPException: Always raises with 500 status.
    """
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(cause),
    ) from cause


def _raise_bad_gateway(cause: Exception) -> Never:
    """Raise HTTP 502 for a failed backend exchange.

    Args:
        cause: The original exception.

    Raises:
        HTTPException: Always raises with 502 status.
    """
    raise HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=str(cause),
    ) from cause


def create_control_router(facade: BackendFacade) -> APIRouter:
    """Create a FastAPI router for the backend facade operations.

    Args:
        facade: The BackendFacade instance to control.

    Returns:
        A FastAPI APIRouter with start, stop, status and message endpoints.
    """
    router = APIRouter(prefix="/backend", tags=["backend"])

    @router.post("/start", response_model=StartResponse)
    async def start_backend() -> StartResponse:
        """Start the backend process."""
        try:
            result = await facade.start()
        except AlreadyRunningError as e:
            _raise_conflict(e)
        except SupervisorError as e:
            _raise_server_error(e)

        return StartResponse(pid=result.pid, message=result.message)

    @router.post("/stop", response_model=MessageResponse)
    async def stop_backend() -> MessageResponse:
        """Stop the backend process."""
        try:
            result = await facade.stop()
        except NotRunningError as e:
            _raise_conflict(e)
        except SupervisorError as e:
            _raise_server_error(e)

        return MessageResponse(message=result.message)

    @router.get("/status", response_model=ServerStatusResponse)
    async def get_backend_status() -> ServerStatusResponse:
        """Get the backend status."""
        result = await facade.status()
        return ServerStatusResponse(running=result.running, port=result.port, pid=result.pid)

    @router.post("/messages", response_model=ChatMessageResponse)
    async def send_message(request: SendMessageRequest) -> ChatMessageResponse:
        """Relay a message to the backend."""
        try:
            reply = await facade.send_message(request.text)
        except RelayError as e:
            _raise_bad_gateway(e)

        return _build_chat_response(reply)

    return router
