"""Core domain models used across the application."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import StrEnum

from .datetime_utils import ensure_utc, utc_now
from .errors import ValidationError

_EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$", re.IGNORECASE
)
_WHITESPACE = re.compile(r"\s")

MAX_EMAIL_LENGTH = 254
SENDER_NAME_LENGTH = (2, 100)
SUBJECT_LENGTH = (3, 200)
BODY_LENGTH = (10, 5000)
PREVIEW_ELLIPSIS = "..."


@dataclass(frozen=True, slots=True)
class EmailAddress:
    """Validated, lowercase email address."""

    value: str

    def __post_init__(self) -> None:
        trimmed = (self.value or "").strip()
        if not trimmed:
            raise ValidationError("Sender email cannot be empty", field="sender_email")
        if len(trimmed) > MAX_EMAIL_LENGTH:
            raise ValidationError(
                f"Sender email cannot exceed {MAX_EMAIL_LENGTH} characters",
                field="sender_email",
            )
        if not _EMAIL_PATTERN.match(trimmed):
            raise ValidationError(
                f"Invalid email format: {trimmed}", field="sender_email"
            )
        object.__setattr__(self, "value", trimmed.lower())

    @classmethod
    def parse(cls, raw: EmailAddress | str | None) -> EmailAddress:
        """Return ``raw`` as an :class:`EmailAddress`, validating strings."""
        if isinstance(raw, EmailAddress):
            return raw
        return cls(raw or "")

    @staticmethod
    def normalize(raw: str) -> str:
        """Normalise a query address the same way stored addresses are."""
        return raw.strip().lower()

    @property
    def domain(self) -> str:
        """Portion after the last ``@``."""
        return self.value.rpartition("@")[2]

    @property
    def local_part(self) -> str:
        """Portion before the last ``@``."""
        return self.value.rpartition("@")[0]

    def __str__(self) -> str:
        return self.value


def _require_text(
    value: str | None, field_name: str, label: str, bounds: tuple[int, int]
) -> str:
    trimmed = (value or "").strip()
    minimum, maximum = bounds
    if not trimmed:
        raise ValidationError(f"{label} cannot be empty", field=field_name)
    if len(trimmed) < minimum:
        raise ValidationError(
            f"{label} must be at least {minimum} characters", field=field_name
        )
    if len(trimmed) > maximum:
        raise ValidationError(
            f"{label} cannot exceed {maximum} characters", field=field_name
        )
    return trimmed


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True)
class Message:
    """Inbound contact message submitted by a visitor.

    Text fields are trimmed and length checked on construction. After creation
    only the read flag changes, through :meth:`mark_read` and
    :meth:`mark_unread`; instances handed out by a repository are snapshots, so
    changes must be written back explicitly.
    """

    sender_name: str
    sender_email: EmailAddress
    subject: str
    body: str
    sent_at: datetime
    is_read: bool = False
    id: int | None = None

    def __post_init__(self) -> None:
        self.sender_name = _require_text(
            self.sender_name, "sender_name", "Sender name", SENDER_NAME_LENGTH
        )
        self.sender_email = EmailAddress.parse(self.sender_email)
        self.subject = _require_text(self.subject, "subject", "Subject", SUBJECT_LENGTH)
        self.body = _require_text(self.body, "body", "Message", BODY_LENGTH)
        if not isinstance(self.sent_at, datetime):
            raise ValidationError("Sent timestamp is required", field="sent_at")
        self.sent_at = ensure_utc(self.sent_at)
        self.is_read = bool(self.is_read)

    @classmethod
    def create(
        cls,
        sender_name: str,
        sender_email: EmailAddress | str,
        subject: str,
        body: str,
        *,
        sent_at: datetime | None = None,
        now: datetime | None = None,
    ) -> Message:
        """Validate the supplied fields and build a new unread message."""
        current = ensure_utc(now) if now is not None else utc_now()
        timestamp = ensure_utc(sent_at) if sent_at is not None else current
        if timestamp > current:
            raise ValidationError(
                "Sent timestamp cannot be in the future", field="sent_at"
            )
        return cls(
            sender_name=sender_name,
            sender_email=EmailAddress.parse(sender_email),
            subject=subject,
            body=body,
            sent_at=timestamp,
        )

    def with_id(self, identifier: int) -> Message:
        """Return a copy of this message carrying a store-assigned identifier."""
        return replace(self, id=identifier)

    def mark_read(self) -> None:
        """Flag the message as read. Marking twice is a no-op."""
        self.is_read = True

    def mark_unread(self) -> None:
        """Flag the message as unread. Marking twice is a no-op."""
        self.is_read = False

    def age_in_hours(self, now: datetime) -> int:
        """Whole hours elapsed since the message was sent."""
        elapsed = ensure_utc(now) - self.sent_at
        return max(0, int(elapsed.total_seconds() // 3600))

    def age_in_days(self, now: datetime) -> int:
        """Whole days elapsed since the message was sent."""
        elapsed = ensure_utc(now) - self.sent_at
        return max(0, elapsed.days)

    def preview(self, max_length: int = 100) -> str:
        """Return the body shortened at a word boundary for list displays."""
        if max_length < 1:
            raise ValidationError("Preview length must be positive", field="max_length")
        if len(self.body) <= max_length:
            return self.body
        truncated = self.body[:max_length]
        boundaries = [match.start() for match in _WHITESPACE.finditer(truncated)]
        if boundaries and boundaries[-1] > 0:
            truncated = truncated[: boundaries[-1]]
        return truncated.rstrip() + PREVIEW_ELLIPSIS

    def word_count(self) -> int:
        """Number of whitespace separated words in the body."""
        return len(self.body.split())

    def domain(self) -> str:
        """Sender domain, lowercase."""
        return self.sender_email.domain


@dataclass(frozen=True, slots=True)
class MessageClassification:
    """Read-time classification of a message."""

    is_urgent: bool
    priority: int
    is_potential_spam: bool


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True, slots=True)
class MessageView:
    """Message enriched with derived fields for presentation."""

    id: int | None
    sender_name: str
    sender_email: str
    sender_domain: str
    subject: str
    body: str
    preview: str
    sent_at: datetime
    formatted_sent_date: str
    relative_time: str
    is_read: bool
    age_in_days: int
    age_in_hours: int
    is_urgent: bool
    priority: int
    is_potential_spam: bool
    message_length: int
    word_count: int


@dataclass(frozen=True, slots=True)
class ReplyDraft:
    """Pre-filled reply to a contact message."""

    original_message_id: int | None
    to_email: str
    to_name: str
    subject: str
    template: str
    original_body: str


@dataclass(frozen=True, slots=True)
class MessageQuery:
    """Search and filter criteria for listing messages."""

    search_term: str | None = None
    sender_email: str | None = None
    is_read: bool | None = None
    is_urgent: bool | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    days_back: int | None = None
    skip: int | None = None
    take: int | None = None


class BulkAction(StrEnum):
    """Actions supported by the bulk operation engine."""

    MARK_READ = "mark_read"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class BulkActionRequest:
    """Identifiers plus the raw action tag requested by a caller."""

    message_ids: tuple[int, ...]
    action: str


@dataclass(frozen=True, slots=True)
class BulkActionResult:
    """Outcome of a bulk action."""

    action: BulkAction | None
    affected_count: int


@dataclass(frozen=True, slots=True)
class DomainStats:
    """Message volume attributed to one sender domain."""

    domain: str
    message_count: int
    percentage: float


@dataclass(frozen=True, slots=True)
class DailyStats:
    """Message volume received on one UTC calendar day."""

    date: date
    message_count: int
    unread_count: int

    @property
    def read_count(self) -> int:
        """Messages from this day that have been read."""
        return self.message_count - self.unread_count

    @property
    def label(self) -> str:
        """Short display label such as ``"Oct 05"``."""
        return self.date.strftime("%b %d")


@dataclass(frozen=True, slots=True)
class RangeStatistics:
    """Read/unread split for messages sent within a date range."""

    total: int
    read: int
    unread: int


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True, slots=True)
class StatisticsReport:
    """Aggregated inbox statistics."""

    total_messages: int
    unread_messages: int
    read_messages: int
    urgent_messages: int
    today_messages: int
    week_messages: int
    month_messages: int
    average_messages_per_day: float
    read_percentage: float
    top_domains: tuple[DomainStats, ...] = field(default_factory=tuple)
    daily_stats: tuple[DailyStats, ...] = field(default_factory=tuple)


__all__ = [
    "BulkAction",
    "BulkActionRequest",
    "BulkActionResult",
    "DailyStats",
    "DomainStats",
    "EmailAddress",
    "Message",
    "MessageClassification",
    "MessageQuery",
    "MessageView",
    "RangeStatistics",
    "ReplyDraft",
    "StatisticsReport",
]
