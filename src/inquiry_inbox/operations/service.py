"""Async use cases over the contact message inbox."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import Any, TypeVar

from inquiry_inbox.classification import (
    build_message_view,
    build_message_views,
    build_reply_draft,
)
from inquiry_inbox.core.config import ClassifierSettings
from inquiry_inbox.core.datetime_utils import utc_now
from inquiry_inbox.core.errors import ValidationError
from inquiry_inbox.core.interfaces import MessageRepository, Notifier
from inquiry_inbox.core.models import (
    BulkActionRequest,
    BulkActionResult,
    Message,
    MessageQuery,
    MessageView,
    RangeStatistics,
    ReplyDraft,
    StatisticsReport,
)

from .bulk import BulkActionEngine
from .statistics import StatisticsAggregator

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class InquiryService:
    """Entry point for creating, querying and managing contact messages.

    Repository calls run in a worker thread so SQLite I/O never blocks the
    event loop. Cancelling the awaiting task abandons the call.
    """

    def __init__(
        self,
        repository: MessageRepository,
        *,
        settings: ClassifierSettings | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repository = repository
        self._settings = settings or ClassifierSettings()
        self._notifier = notifier
        self._clock = clock
        self._bulk = BulkActionEngine(repository)
        self._statistics = StatisticsAggregator(repository)

    async def _run(self, func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
        return await asyncio.to_thread(func, *args, **kwargs)

    def _views(self, messages: Sequence[Message]) -> list[MessageView]:
        return build_message_views(messages, self._clock(), self._settings)

    # Creation ----------------------------------------------------------------
    async def submit_message(
        self, sender_name: str, sender_email: str, subject: str, body: str
    ) -> MessageView:
        """Validate, store and announce a new message."""
        now = self._clock()
        message = Message.create(sender_name, sender_email, subject, body, now=now)
        stored = await self._run(self._repository.add, message)
        await self._notify(stored)
        return build_message_view(stored, now, self._settings)

    async def _notify(self, message: Message) -> None:
        if self._notifier is None:
            return
        try:
            delivered = await self._run(self._notifier.notify, message)
        except Exception:  # pylint: disable=broad-except
            LOGGER.warning(
                "Notification for message %s raised; message kept",
                message.id,
                exc_info=True,
            )
            return
        if not delivered:
            LOGGER.warning("Notification for message %s was not delivered", message.id)

    # Queries -----------------------------------------------------------------
    async def get_message(self, message_id: int) -> MessageView | None:
        """Return a single message view, or ``None`` when it does not exist."""
        message = await self._run(self._repository.get_by_id, message_id)
        if message is None:
            return None
        return build_message_view(message, self._clock(), self._settings)

    async def list_messages(self) -> list[MessageView]:
        """Return every message, newest first."""
        return self._views(await self._run(self._repository.get_all))

    async def list_unread(self) -> list[MessageView]:
        """Return unread messages, newest first."""
        return self._views(await self._run(self._repository.get_unread))

    async def list_read(self) -> list[MessageView]:
        """Return read messages, newest first."""
        return self._views(await self._run(self._repository.get_read))

    async def list_urgent(self, threshold_hours: int | None = None) -> list[MessageView]:
        """Return unread messages past the urgency threshold, oldest first."""
        threshold = (
            self._settings.urgent_threshold_hours
            if threshold_hours is None
            else threshold_hours
        )
        messages = await self._run(
            self._repository.get_urgent, threshold, now=self._clock()
        )
        return self._views(messages)

    async def list_recent(self, days: int = 7) -> list[MessageView]:
        """Return messages from the last ``days`` days."""
        messages = await self._run(
            self._repository.get_recent, days, now=self._clock()
        )
        return self._views(messages)

    async def list_by_sender(self, sender_email: str) -> list[MessageView]:
        """Return messages from one sender address."""
        return self._views(
            await self._run(self._repository.get_by_sender, sender_email)
        )

    async def list_by_date_range(
        self, start: datetime, end: datetime
    ) -> list[MessageView]:
        """Return messages sent within ``[start, end]``."""
        return self._views(
            await self._run(self._repository.get_by_date_range, start, end)
        )

    async def get_page(self, page_number: int, page_size: int) -> list[MessageView]:
        """Return one page of messages, newest first."""
        return self._views(
            await self._run(self._repository.get_paged, page_number, page_size)
        )

    async def search(self, query: MessageQuery) -> list[MessageView]:
        """Filter messages using the first applicable criterion, then paginate.

        Precedence: search term, sender email, start and end date, days back,
        unread, read, urgent, otherwise everything.
        """
        for name, value in (("skip", query.skip), ("take", query.take)):
            if value is not None and value < 0:
                raise ValidationError(f"{name} must be non-negative", field=name)

        messages = await self._run(self._select_for_query, query, self._clock())
        if query.skip is not None:
            messages = messages[query.skip :]
        if query.take is not None:
            messages = messages[: query.take]
        return self._views(messages)

    def _select_for_query(self, query: MessageQuery, now: datetime) -> list[Message]:
        repository = self._repository
        if query.search_term and query.search_term.strip():
            return repository.search(query.search_term)
        if query.sender_email and query.sender_email.strip():
            return repository.get_by_sender(query.sender_email)
        if query.start_date is not None and query.end_date is not None:
            return repository.get_by_date_range(query.start_date, query.end_date)
        if query.days_back is not None:
            return repository.get_recent(query.days_back, now=now)
        if query.is_read is False:
            return repository.get_unread()
        if query.is_read is True:
            return repository.get_read()
        if query.is_urgent is True:
            return repository.get_urgent(
                self._settings.urgent_threshold_hours, now=now
            )
        return repository.get_all()

    # Mutations ---------------------------------------------------------------
    async def mark_read(self, message_id: int) -> bool:
        """Mark one message read; ``False`` when it does not exist."""
        return await self._run(self._repository.mark_read, message_id)

    async def mark_unread(self, message_id: int) -> bool:
        """Mark one message unread; ``False`` when it does not exist."""
        return await self._run(self._repository.mark_unread, message_id)

    async def mark_many_read(self, message_ids: Iterable[int]) -> int:
        """Mark several messages read; return how many changed."""
        return await self._run(self._repository.mark_many_read, tuple(message_ids))

    async def perform_bulk_action(
        self, message_ids: Iterable[int], action: str
    ) -> BulkActionResult:
        """Run a ``mark_read`` or ``delete`` bulk action."""
        request = BulkActionRequest(message_ids=tuple(message_ids), action=action)
        return await self._run(self._bulk.execute, request)

    async def delete_message(self, message_id: int) -> bool:
        """Delete one message; ``False`` when it does not exist."""
        return await self._run(self._repository.delete, message_id)

    async def purge_older_than(self, days: int) -> int:
        """Delete messages older than ``days`` days; return how many went."""
        return await self._run(
            self._repository.delete_older_than, days, now=self._clock()
        )

    # Reporting ---------------------------------------------------------------
    async def get_statistics(self) -> StatisticsReport:
        """Return the full statistics report."""
        return await self._run(self._statistics.build_report, self._clock())

    async def get_range_statistics(
        self, start: datetime, end: datetime
    ) -> RangeStatistics:
        """Return the read/unread split for a date range."""
        return await self._run(self._statistics.range_counts, start, end)

    async def draft_reply(self, message_id: int) -> ReplyDraft | None:
        """Return a reply skeleton for a stored message, if it exists."""
        message = await self._run(self._repository.get_by_id, message_id)
        return build_reply_draft(message) if message is not None else None


__all__ = ["InquiryService"]
