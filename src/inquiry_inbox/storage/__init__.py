"""Persistence adapters for contact messages."""

from .sqlite import SqliteMessageRepository

__all__ = ["SqliteMessageRepository"]
