# pyright: reportUnusedCallResult=false
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""The command-line interface for backendctl."""

import json
from pathlib import Path
from typing import Annotated

import anyio
import httpx
from cyclopts import App, Parameter
from rich.console import Console
from rich.table import Table

from backendctl.config import BackendConfig, safe_load_config
from backendctl.exceptions import RelayError
from backendctl.supervisor import ChatMessage, HealthProbe, HealthResult, MessageRelay
from backendctl.utils import create_supervisor_logger

app = App(
    name="backendctl",
    help="Supervise a local backend server and relay messages to it.",
    help_on_error=True,
)

ConfigOption = Annotated[
    Path | None, Parameter(name="--config", help="Path to config file")
]


def _load(config: Path | None) -> BackendConfig:
    loaded, _ = safe_load_config(config)
    return loaded


async def _probe(config: BackendConfig) -> HealthResult:
    async with httpx.AsyncClient() as client:
        return await HealthProbe(config, client).check()


async def _send(config: BackendConfig, text: str) -> ChatMessage:
    logger = create_supervisor_logger(config.logging, component="relay")
    async with httpx.AsyncClient() as client:
        return await MessageRelay(config, client, logger).send_message(text)


def render_chat_message(console: Console, message: ChatMessage) -> None:
    """Print a relayed reply and its tool calls."""
    console.print(message.content)
    if message.tool_calls is None:
        return

    table = Table(title="Tool calls")
    table.add_column("Name", style="cyan")
    table.add_column("Arguments")
    for call in message.tool_calls:
        table.add_row(call.name, json.dumps(call.arguments))
    console.print(table)


@app.command(name="probe")
def probe(*, config: ConfigOption = None) -> None:
    """Check whether the backend answers its health endpoint.

    Exits with status 1 if the backend is unhealthy.
    """
    console = Console()
    loaded = _load(config)
    result = anyio.run(_probe, loaded)

    if result.healthy:
        console.print(f"[green]healthy[/green] {loaded.base_url} (HTTP {result.status_code})")
        return

    detail = result.error or f"HTTP {result.status_code}"
    console.print(f"[red]unhealthy[/red] {loaded.base_url}: {detail}")
    raise SystemExit(1)


@app.command(name="send")
def send(text: str, *, config: ConfigOption = None) -> None:
    """Relay one message to the backend and print the reply.

    Args:
        text: The message to send.
        config: Path to config file.
    """
    console = Console()
    error_console = Console(stderr=True)
    loaded = _load(config)

    try:
        reply = anyio.run(_send, loaded, text)
    except RelayError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1) from e

    render_chat_message(console, reply)


@app.command(name="serve")
def serve(
    *,
    config: ConfigOption = None,
    host: Annotated[str, Parameter(help="Bind the control API to this host.")] = "127.0.0.1",
    port: Annotated[int, Parameter(help="Bind the control API to this port.")] = 38081,
    autostart: Annotated[
        bool, Parameter(help="Start the backend as soon as the control API is up.")
    ] = False,
) -> None:
    """Run the control API that exposes start, stop, status and messages."""
    import uvicorn

    from backendctl.server import create_control_app
    from backendctl.supervisor import ConsoleOutputSink

    loaded = _load(config)
    control_app = create_control_app(
        loaded, output_sink=ConsoleOutputSink(), autostart=autostart
    )

    print(f"Starting backendctl control API on {host}:{port}")  # noqa: T201
    print(f"  Backend: {loaded.base_url}")  # noqa: T201
    uvicorn.run(control_app, host=host, port=port, log_level="warning", access_log=False)


def main() -> None:
    """Run the backendctl CLI."""
    app()


if __name__ == "__main__":
    main()
