"""Bulk mutations over many messages at once."""

from __future__ import annotations

import logging

from inquiry_inbox.core.errors import ValidationError
from inquiry_inbox.core.interfaces import MessageRepository
from inquiry_inbox.core.models import BulkAction, BulkActionRequest, BulkActionResult

LOGGER = logging.getLogger(__name__)


def parse_bulk_action(raw: str | BulkAction | None) -> BulkAction:
    """Resolve a caller supplied action tag, ignoring case and padding."""
    if isinstance(raw, BulkAction):
        return raw
    normalized = (raw or "").strip().lower()
    try:
        return BulkAction(normalized)
    except ValueError as exc:
        raise ValidationError(f"Unknown action: {raw}", field="action") from exc


class BulkActionEngine:
    """Dispatch bulk actions to the repository's batch mutators.

    Identifiers that do not exist, or that are already read for
    ``mark_read``, are skipped and left out of the affected count. Storage
    failures abort the whole batch.
    """

    def __init__(self, repository: MessageRepository) -> None:
        self._repository = repository

    def execute(self, request: BulkActionRequest) -> BulkActionResult:
        """Apply ``request`` and report how many messages changed."""
        if not request.message_ids:
            LOGGER.debug("Bulk '%s' requested with no identifiers", request.action)
            return BulkActionResult(action=None, affected_count=0)

        action = parse_bulk_action(request.action)
        if action is BulkAction.MARK_READ:
            affected = self._repository.mark_many_read(request.message_ids)
        else:
            affected = self._repository.delete_many(request.message_ids)

        LOGGER.info(
            "Bulk %s affected %d of %d messages",
            action.value,
            affected,
            len(request.message_ids),
        )
        return BulkActionResult(action=action, affected_count=affected)


__all__ = ["BulkActionEngine", "parse_bulk_action"]
