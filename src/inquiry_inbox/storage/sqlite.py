"""SQLite-backed contact message repository implementation."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from types import TracebackType
from typing import Any

from ..core.config import StorageSettings
from ..core.datetime_utils import (
    ensure_utc,
    parse_datetime,
    serialize_datetime,
    utc_now,
)
from ..core.errors import StorageError, ValidationError
from ..core.interfaces import MessageRepository
from ..core.models import EmailAddress, Message

LOGGER = logging.getLogger(__name__)

_COLUMNS = "id, sender_name, sender_email, subject, body, sent_at, is_read"
_NEWEST_FIRST = "sent_at DESC, id DESC"
_OLDEST_FIRST = "sent_at ASC, id ASC"
# Stay well below SQLITE_MAX_VARIABLE_NUMBER on older builds.
_BATCH_SIZE = 500


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    """Translate ``sqlite3`` failures into :class:`StorageError`."""
    try:
        yield
    except sqlite3.Error as exc:
        LOGGER.error("Database error %s: %s", operation, exc, exc_info=True)
        raise StorageError(f"Error {operation}: {exc}", operation=operation) from exc


def _validate_range(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    start_utc = ensure_utc(start)
    end_utc = ensure_utc(end)
    if end_utc < start_utc:
        raise ValidationError("End date cannot be before start date", field="end")
    return start_utc, end_utc


def _require_non_negative(value: int, field_name: str) -> None:
    if value < 0:
        raise ValidationError(f"{field_name} must be non-negative", field=field_name)


def _unique_ids(message_ids: Iterable[int]) -> list[int]:
    return list(dict.fromkeys(int(message_id) for message_id in message_ids))


def _chunks(values: Sequence[int]) -> Iterator[Sequence[int]]:
    for start in range(0, len(values), _BATCH_SIZE):
        yield values[start : start + _BATCH_SIZE]


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class SqliteMessageRepository(MessageRepository):
    """Persist contact messages using SQLite."""

    def __init__(self, settings: StorageSettings) -> None:
        """Open the database and apply pending migrations."""
        self._settings = settings
        db_path = Path(settings.db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        with _storage_errors(f"opening database {db_path}"):
            self._connection = sqlite3.connect(db_path, check_same_thread=False)
            self._connection.row_factory = sqlite3.Row
            # SQLite's lower() only folds ASCII.
            self._connection.create_function(
                "py_lower", 1, str.lower, deterministic=True
            )
            self._apply_migrations()

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> SqliteMessageRepository:
        """Enter context manager scope."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Ensure the connection is closed when exiting context manager."""
        self.close()

    # Queries -----------------------------------------------------------------
    def get_by_id(self, message_id: int) -> Message | None:
        """Return the stored message or ``None``."""
        with _storage_errors(f"retrieving message {message_id}"):
            rows = self._select("WHERE id = ?", (message_id,))
        return rows[0] if rows else None

    def exists(self, message_id: int) -> bool:
        """Return ``True`` when the message is stored."""
        with _storage_errors(f"checking message {message_id}"):
            cur = self._connection.execute(
                "SELECT 1 FROM messages WHERE id = ? LIMIT 1", (message_id,)
            )
            return cur.fetchone() is not None

    def get_all(self) -> list[Message]:
        """Return every message, newest first."""
        with _storage_errors("retrieving all messages"):
            return self._select()

    def get_unread(self) -> list[Message]:
        """Return unread messages, newest first."""
        with _storage_errors("retrieving unread messages"):
            return self._select("WHERE is_read = 0")

    def get_read(self) -> list[Message]:
        """Return read messages, newest first."""
        with _storage_errors("retrieving read messages"):
            return self._select("WHERE is_read = 1")

    def get_by_sender(self, sender_email: str) -> list[Message]:
        """Return messages from ``sender_email``, newest first."""
        if not sender_email or not sender_email.strip():
            raise ValidationError(
                "Sender email cannot be empty", field="sender_email"
            )
        normalized = EmailAddress.normalize(sender_email)
        with _storage_errors(f"retrieving messages from sender {normalized}"):
            return self._select("WHERE sender_email = ?", (normalized,))

    def get_by_date_range(self, start: datetime, end: datetime) -> list[Message]:
        """Return messages sent within ``[start, end]``, newest first."""
        start_utc, end_utc = _validate_range(start, end)
        with _storage_errors(
            f"retrieving messages between {start_utc.isoformat()} and {end_utc.isoformat()}"
        ):
            return self._select(
                "WHERE sent_at >= ? AND sent_at <= ?",
                (serialize_datetime(start_utc), serialize_datetime(end_utc)),
            )

    def get_recent(self, days: int, *, now: datetime | None = None) -> list[Message]:
        """Return messages sent since ``now - days``, newest first."""
        _require_non_negative(days, "days")
        cutoff = ensure_utc(now or utc_now()) - timedelta(days=days)
        with _storage_errors(f"retrieving messages from the last {days} days"):
            return self._select("WHERE sent_at >= ?", (serialize_datetime(cutoff),))

    def search(self, term: str | None) -> list[Message]:
        """Case-insensitive substring search over name, subject, body and email.

        A missing or blank term returns the same result as :meth:`get_all`.
        """
        if term is None or not term.strip():
            return self.get_all()
        needle = term.strip().lower()
        with _storage_errors(f"searching messages for '{term}'"):
            return self._select(
                """
                WHERE instr(py_lower(sender_name), ?) > 0
                   OR instr(py_lower(subject), ?) > 0
                   OR instr(py_lower(body), ?) > 0
                   OR instr(py_lower(sender_email), ?) > 0
                """,
                (needle, needle, needle, needle),
            )

    def get_urgent(
        self, threshold_hours: int = 24, *, now: datetime | None = None
    ) -> list[Message]:
        """Return unread messages at least ``threshold_hours`` old, oldest first."""
        _require_non_negative(threshold_hours, "threshold_hours")
        cutoff = ensure_utc(now or utc_now()) - timedelta(hours=threshold_hours)
        with _storage_errors(
            f"retrieving urgent messages with threshold {threshold_hours} hours"
        ):
            return self._select(
                "WHERE is_read = 0 AND sent_at <= ?",
                (serialize_datetime(cutoff),),
                order=_OLDEST_FIRST,
            )

    def get_paged(self, page_number: int, page_size: int) -> list[Message]:
        """Return page ``page_number`` (1-based) of ``page_size`` messages."""
        if page_number < 1:
            raise ValidationError(
                "Page number must be greater than 0", field="page_number"
            )
        if page_size < 1:
            raise ValidationError("Page size must be greater than 0", field="page_size")
        with _storage_errors(
            f"retrieving paged messages (page {page_number}, size {page_size})"
        ):
            return self._select(
                "",
                (),
                limit=(page_size, (page_number - 1) * page_size),
            )

    # Mutations ---------------------------------------------------------------
    def add(self, message: Message) -> Message:
        """Insert ``message`` and return a snapshot with its new identifier."""
        if message.id is not None:
            raise ValidationError(
                f"Message {message.id} is already stored", field="id"
            )
        LOGGER.debug("Persisting message from %s", message.sender_email)
        with _storage_errors("adding message"), self._connection:
            cur = self._connection.execute(
                """
                INSERT INTO messages (
                    sender_name, sender_email, subject, body, sent_at, is_read
                ) VALUES (?, ?, ?, ?, ?, ?)
                RETURNING id
                """,
                (
                    message.sender_name,
                    message.sender_email.value,
                    message.subject,
                    message.body,
                    serialize_datetime(message.sent_at),
                    1 if message.is_read else 0,
                ),
            )
            row = cur.fetchone()
        stored = message.with_id(int(row[0]))
        LOGGER.info("Stored message %s from %s", stored.id, stored.sender_email)
        return stored

    def update(self, message: Message) -> Message:
        """Write back the read flag of ``message`` and return the stored record.

        Sender, subject, body and sent time are fixed once a message is added,
        so only ``is_read`` is persisted.
        """
        if message.id is None:
            raise ValidationError("Cannot update a message without an id", field="id")
        operation = f"updating message {message.id}"
        with _storage_errors(operation), self._connection:
            cur = self._connection.execute(
                "UPDATE messages SET is_read = ? WHERE id = ?",
                (1 if message.is_read else 0, message.id),
            )
        if cur.rowcount == 0:
            raise StorageError(
                f"Error {operation}: message not found", operation=operation
            )
        stored = self.get_by_id(message.id)
        if stored is None:  # pragma: no cover - deleted concurrently
            raise StorageError(
                f"Error {operation}: message disappeared", operation=operation
            )
        return stored

    def mark_read(self, message_id: int) -> bool:
        """Mark one message read; ``False`` when it does not exist."""
        return self._set_read_flag(message_id, True)

    def mark_unread(self, message_id: int) -> bool:
        """Mark one message unread; ``False`` when it does not exist."""
        return self._set_read_flag(message_id, False)

    def mark_many_read(self, message_ids: Iterable[int]) -> int:
        """Mark unread messages read in one transaction; return how many changed."""
        ids = _unique_ids(message_ids)
        if not ids:
            return 0
        changed = 0
        with _storage_errors(f"marking {len(ids)} messages as read"), self._connection:
            for chunk in _chunks(ids):
                cur = self._connection.execute(
                    f"UPDATE messages SET is_read = 1 "
                    f"WHERE is_read = 0 AND id IN ({_placeholders(len(chunk))})",
                    tuple(chunk),
                )
                changed += cur.rowcount
        LOGGER.info("Marked %d of %d messages as read", changed, len(ids))
        return changed

    def delete(self, message_id: int) -> bool:
        """Delete one message; ``False`` when it does not exist."""
        LOGGER.debug("Deleting message %s", message_id)
        with _storage_errors(f"deleting message {message_id}"), self._connection:
            cur = self._connection.execute(
                "DELETE FROM messages WHERE id = ?", (message_id,)
            )
        return cur.rowcount > 0

    def delete_many(self, message_ids: Iterable[int]) -> int:
        """Delete messages in one transaction; return how many were removed."""
        ids = _unique_ids(message_ids)
        if not ids:
            return 0
        deleted = 0
        with _storage_errors(f"deleting {len(ids)} messages"), self._connection:
            for chunk in _chunks(ids):
                cur = self._connection.execute(
                    f"DELETE FROM messages WHERE id IN ({_placeholders(len(chunk))})",
                    tuple(chunk),
                )
                deleted += cur.rowcount
        LOGGER.info("Deleted %d of %d requested messages", deleted, len(ids))
        return deleted

    def delete_older_than(self, days: int, *, now: datetime | None = None) -> int:
        """Delete messages sent before ``now - days``."""
        _require_non_negative(days, "days")
        cutoff = ensure_utc(now or utc_now()) - timedelta(days=days)
        with _storage_errors(
            f"deleting messages older than {days} days"
        ), self._connection:
            cur = self._connection.execute(
                "DELETE FROM messages WHERE sent_at < ?",
                (serialize_datetime(cutoff),),
            )
        LOGGER.info(
            "Retention sweep removed %d messages older than %d days",
            cur.rowcount,
            days,
        )
        return cur.rowcount

    # Counters ----------------------------------------------------------------
    def count(self) -> int:
        """Return the number of stored messages."""
        with _storage_errors("counting messages"):
            return self._scalar("SELECT COUNT(*) FROM messages")

    def count_unread(self) -> int:
        """Return the number of unread messages."""
        with _storage_errors("counting unread messages"):
            return self._scalar("SELECT COUNT(*) FROM messages WHERE is_read = 0")

    def count_in_range(
        self, start: datetime, end: datetime
    ) -> tuple[int, int, int]:
        """Return ``(total, read, unread)`` for messages sent in ``[start, end]``."""
        start_utc, end_utc = _validate_range(start, end)
        with _storage_errors(
            f"counting messages between {start_utc.isoformat()} and {end_utc.isoformat()}"
        ):
            row = self._connection.execute(
                """
                SELECT COUNT(*) AS total, COALESCE(SUM(is_read), 0) AS read_count
                FROM messages
                WHERE sent_at >= ? AND sent_at <= ?
                """,
                (serialize_datetime(start_utc), serialize_datetime(end_utc)),
            ).fetchone()
        total = int(row["total"])
        read = int(row["read_count"])
        return total, read, total - read

    def close(self) -> None:
        """Close the underlying SQLite connection."""
        self._connection.close()

    # Internal helpers --------------------------------------------------------
    def _set_read_flag(self, message_id: int, is_read: bool) -> bool:
        state = "read" if is_read else "unread"
        with _storage_errors(f"marking message {message_id} as {state}"):
            message = self.get_by_id(message_id)
            if message is None:
                return False
            if is_read:
                message.mark_read()
            else:
                message.mark_unread()
            with self._connection:
                self._connection.execute(
                    "UPDATE messages SET is_read = ? WHERE id = ?",
                    (1 if message.is_read else 0, message_id),
                )
        LOGGER.debug("Marked message %s as %s", message_id, state)
        return True

    def _select(
        self,
        clause: str = "",
        params: Sequence[Any] = (),
        *,
        order: str = _NEWEST_FIRST,
        limit: tuple[int, int] | None = None,
    ) -> list[Message]:
        sql = f"SELECT {_COLUMNS} FROM messages {clause} ORDER BY {order}"
        arguments = list(params)
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            arguments.extend(limit)
        cur = self._connection.execute(sql, arguments)
        return [_row_to_message(row) for row in cur.fetchall()]

    def _scalar(self, sql: str, params: Sequence[Any] = ()) -> int:
        row = self._connection.execute(sql, params).fetchone()
        return int(row[0]) if row is not None else 0

    def _apply_migrations(self) -> None:
        schema_dir = Path(__file__).resolve().parent / "schema"
        current_version = self._scalar("PRAGMA user_version")
        for migration in sorted(schema_dir.glob("*.sql")):
            version = int(migration.stem.split("_", 1)[0])
            if version <= current_version:
                continue
            LOGGER.debug("Applying migration %s", migration.name)
            script = migration.read_text(encoding="utf-8")
            with self._connection:
                self._connection.executescript(script)
                self._connection.execute(f"PRAGMA user_version = {version}")


def _row_to_message(row: sqlite3.Row) -> Message:
    return Message(
        sender_name=row["sender_name"],
        sender_email=EmailAddress(row["sender_email"]),
        subject=row["subject"],
        body=row["body"],
        sent_at=parse_datetime(row["sent_at"]),
        is_read=bool(row["is_read"]),
        id=int(row["id"]),
    )


__all__ = ["SqliteMessageRepository"]
