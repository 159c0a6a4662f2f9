"""Shared utilities for backendctl."""

from ._logging import create_supervisor_logger

__all__ = ["create_supervisor_logger"]
