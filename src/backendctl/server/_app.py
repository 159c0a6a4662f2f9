"""Control application factory.

This module provides a factory function for creating the FastAPI control
application that exposes the backend facade to a desktop shell.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from backendctl.exceptions import SupervisorError
from backendctl.supervisor import BackendFacade, create_control_router
from backendctl.utils import create_supervisor_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from backendctl.config import BackendConfig
    from backendctl.supervisor import OutputSink


def create_control_app(
    config: BackendConfig,
    *,
    facade: BackendFacade | None = None,
    output_sink: OutputSink | None = None,
    autostart: bool = False,
) -> FastAPI:
    """Create the FastAPI control application.

    The facade is entered for the lifetime of the app, so the backend is
    stopped when the app shuts down.

    Args:
        config: Backend configuration.
        facade: Pre-built facade to serve. Built from config if None.
        output_sink: Sink for captured backend output, used when building
            the facade.
        autostart: Start the backend when the app starts.

    Returns:
        A FastAPI application with the backend control endpoints.
    """
    effective_facade = facade or BackendFacade(config, output_sink=output_sink)
    logger = create_supervisor_logger(config.logging, component="control")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        async with effective_facade:
            app.state.facade = effective_facade
            if autostart:
                try:
                    _ = await effective_facade.start()
                except SupervisorError as e:
                    await logger.aerror("autostart_failed", error=str(e))
            yield

    app = FastAPI(
        title="backendctl control",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.include_router(create_control_router(effective_facade))

    @app.get("/health", include_in_schema=False)
    async def get_health() -> dict[str, str]:  # pyright: ignore[reportUnusedFunction]
        return {"status": "healthy"}

    return app
