"""Command-line interface for backendctl."""

from ._app import app, main, render_chat_message

__all__ = ["app", "main", "render_chat_message"]
