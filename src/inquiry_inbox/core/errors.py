"""Exception hierarchy shared by every layer of the inbox."""

from __future__ import annotations


class InquiryError(Exception):
    """Base class for errors raised by the inquiry inbox."""


class ValidationError(InquiryError, ValueError):
    """Raised when caller supplied input breaks a validation rule."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class StorageError(InquiryError, RuntimeError):
    """Raised when the persistent store fails to complete an operation."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


__all__ = ["InquiryError", "StorageError", "ValidationError"]
