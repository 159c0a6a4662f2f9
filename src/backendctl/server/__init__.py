"""Control server for the backend facade."""

from ._app import create_control_app

__all__ = ["create_control_app"]
