"""Message relay to the backend generation endpoint.

The backend reply is treated as a loosely-typed JSON document: fields are
looked up defensively and missing or mistyped optional fields degrade to
defaults instead of failing the call.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, final

import httpx

from backendctl.exceptions import DecodeError, ServerError, TransportError

from ._models import ChatMessage, ToolCall

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from backendctl.config import BackendConfig

NO_RESPONSE_PLACEHOLDER = "No response"
TOOL_CALL_TYPE = "tool_call"


def extract_content(payload: dict[str, Any]) -> str:  # pyright: ignore[reportExplicitAny]
    """Return the reply text, or the placeholder if it is missing."""
    output = payload.get("output")
    if isinstance(output, str):
        return output
    return NO_RESPONSE_PLACEHOLDER


def extract_tool_calls(
    payload: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> tuple[ToolCall, ...] | None:
    """Collect tool calls from the reply's messages array.

    Entries are kept only if their type is "tool_call", their name is a
    string and an arguments key is present. Malformed entries are skipped.

    Args:
        payload: The decoded response document.

    Returns:
        The tool calls in order, or None if there were none.
    """
    messages = payload.get("messages")
    if not isinstance(messages, list):
        return None

    calls: list[ToolCall] = []
    for entry in messages:  # pyright: ignore[reportUnknownVariableType]
        if not isinstance(entry, dict) or entry.get("type") != TOOL_CALL_TYPE:
            continue
        name = entry.get("name")  # pyright: ignore[reportUnknownMemberType]
        if not isinstance(name, str) or "arguments" not in entry:
            continue
        calls.append(ToolCall(name=name, arguments=entry["arguments"]))

    return tuple(calls) if calls else None


def parse_reply(payload: object) -> ChatMessage:
    """Normalize a decoded backend reply into a ChatMessage.

    A document that is not a JSON object is treated as an empty object.
    """
    document: dict[str, Any] = payload if isinstance(payload, dict) else {}  # pyright: ignore[reportExplicitAny]
    return ChatMessage(
        content=extract_content(document),
        tool_calls=extract_tool_calls(document),
    )


@final
class MessageRelay:
    """Forwards a single conversational turn to the backend.

    The relay does not consult the supervisor: it assumes the backend is
    reachable and reports a TransportError when it is not.
    """

    __slots__ = ("_client", "_logger", "_timeout", "_url")

    def __init__(
        self,
        config: BackendConfig,
        client: httpx.AsyncClient,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the relay.

        Args:
            config: Backend configuration providing host, port, path and timeout.
            client: HTTP client used for requests. Not closed by the relay.
            logger: Optional logger for request failures.
        """
        self._client = client
        self._url = f"{config.base_url}{config.generate_path}"
        self._timeout = config.request_timeout
        self._logger = logger

    async def send_message(self, text: str) -> ChatMessage:
        """Send one user message and return the normalized reply.

        Args:
            text: The user's input text.

        Returns:
            The reply content and any tool calls.

        Raises:
            TransportError: If the backend cannot be reached or its URL is invalid.
            ServerError: If the backend answers with a non-success status.
            DecodeError: If the response body is not valid JSON.
        """
        body = {"input": text, "stream": False}

        try:
            response = await self._client.post(self._url, json=body, timeout=self._timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            if self._logger is not None:
                await self._logger.awarning("relay_transport_failed", url=self._url, error=str(e))
            msg = f"Failed to send request: {e}"
            raise TransportError(msg, url=self._url, cause=e) from e

        if not response.is_success:
            if self._logger is not None:
                await self._logger.awarning(
                    "relay_server_error", url=self._url, status_code=response.status_code
                )
            msg = f"Server returned error: {response.status_code} {response.reason_phrase}"
            raise ServerError(msg, status_code=response.status_code)

        try:
            payload: object = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            msg = f"Failed to parse response: {e}"
            raise DecodeError(msg, cause=e) from e

        return parse_reply(payload)
