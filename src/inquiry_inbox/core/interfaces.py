"""Protocol interfaces for decoupling components."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from .models import Message


class MessageRepository(Protocol):
    """Abstraction for contact message persistence.

    Every returned :class:`Message` is a detached snapshot. Storage failures
    surface as :class:`~inquiry_inbox.core.errors.StorageError`.
    """

    def get_by_id(self, message_id: int) -> Message | None:
        """Return the stored message or ``None`` when it does not exist."""
        raise NotImplementedError

    def exists(self, message_id: int) -> bool:
        """Return ``True`` when a message with ``message_id`` is stored."""
        raise NotImplementedError

    def get_all(self) -> list[Message]:
        """Return every message, newest first."""
        raise NotImplementedError

    def get_unread(self) -> list[Message]:
        """Return unread messages, newest first."""
        raise NotImplementedError

    def get_read(self) -> list[Message]:
        """Return read messages, newest first."""
        raise NotImplementedError

    def get_by_sender(self, sender_email: str) -> list[Message]:
        """Return messages from one sender address, newest first."""
        raise NotImplementedError

    def get_by_date_range(self, start: datetime, end: datetime) -> list[Message]:
        """Return messages sent within ``[start, end]``, newest first."""
        raise NotImplementedError

    def get_recent(self, days: int, *, now: datetime | None = None) -> list[Message]:
        """Return messages sent within the last ``days`` days."""
        raise NotImplementedError

    def search(self, term: str | None) -> list[Message]:
        """Return messages containing ``term`` in any text field."""
        raise NotImplementedError

    def get_urgent(
        self, threshold_hours: int = 24, *, now: datetime | None = None
    ) -> list[Message]:
        """Return unread messages older than the threshold, oldest first."""
        raise NotImplementedError

    def get_paged(self, page_number: int, page_size: int) -> list[Message]:
        """Return one page of messages, newest first."""
        raise NotImplementedError

    def add(self, message: Message) -> Message:
        """Insert ``message`` and return it with its assigned identifier."""
        raise NotImplementedError

    def update(self, message: Message) -> Message:
        """Write back the mutable state of a stored message."""
        raise NotImplementedError

    def mark_read(self, message_id: int) -> bool:
        """Mark one message read; ``False`` when it does not exist."""
        raise NotImplementedError

    def mark_unread(self, message_id: int) -> bool:
        """Mark one message unread; ``False`` when it does not exist."""
        raise NotImplementedError

    def mark_many_read(self, message_ids: Iterable[int]) -> int:
        """Mark several messages read and return how many changed."""
        raise NotImplementedError

    def delete(self, message_id: int) -> bool:
        """Delete one message; ``False`` when it does not exist."""
        raise NotImplementedError

    def delete_many(self, message_ids: Iterable[int]) -> int:
        """Delete several messages and return how many were removed."""
        raise NotImplementedError

    def delete_older_than(self, days: int, *, now: datetime | None = None) -> int:
        """Delete messages sent more than ``days`` days ago."""
        raise NotImplementedError

    def count(self) -> int:
        """Return the number of stored messages."""
        raise NotImplementedError

    def count_unread(self) -> int:
        """Return the number of unread messages."""
        raise NotImplementedError

    def count_in_range(
        self, start: datetime, end: datetime
    ) -> tuple[int, int, int]:
        """Return ``(total, read, unread)`` for messages sent in the range."""
        raise NotImplementedError

    def close(self) -> None:
        """Release database resources."""
        raise NotImplementedError


class Notifier(Protocol):
    """Delivers operator notifications about newly received messages."""

    def notify(self, message: Message) -> bool:
        """Send a notification; return ``False`` when delivery failed."""
        raise NotImplementedError


__all__ = ["MessageRepository", "Notifier"]
