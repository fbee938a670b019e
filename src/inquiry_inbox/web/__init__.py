"""Web application entry point for the inquiry inbox."""

from .app import create_app

__all__ = ["create_app"]
