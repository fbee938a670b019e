"""Datetime helpers shared across the application."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

__all__ = [
    "ensure_utc",
    "format_relative_time",
    "format_sent_date",
    "parse_datetime",
    "serialize_datetime",
    "utc_now",
]

# Largest unit first; the first unit that fits at least once wins.
_RELATIVE_UNITS: tuple[tuple[str, timedelta], ...] = (
    ("year", timedelta(days=365)),
    ("month", timedelta(days=30)),
    ("day", timedelta(days=1)),
    ("hour", timedelta(hours=1)),
    ("minute", timedelta(minutes=1)),
)

# (upper bound on age, strftime pattern) pairs for ``format_sent_date``.
_SENT_DATE_FORMATS: tuple[tuple[timedelta, str], ...] = (
    (timedelta(days=1), "%H:%M"),
    (timedelta(days=7), "%a %H:%M"),
)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` in UTC, treating naive datetimes as UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def serialize_datetime(value: datetime) -> str:
    """Serialise ``value`` to a sortable ISO 8601 string in UTC."""
    return ensure_utc(value).isoformat(timespec="microseconds")


def parse_datetime(value: str) -> datetime:
    """Parse an ISO 8601 string produced by :func:`serialize_datetime`."""
    return ensure_utc(datetime.fromisoformat(value))


def _pluralize(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def format_relative_time(moment: datetime, now: datetime) -> str:
    """Describe how long ago ``moment`` happened, e.g. ``"3 hours ago"``."""
    elapsed = ensure_utc(now) - ensure_utc(moment)
    for unit, span in _RELATIVE_UNITS:
        count = int(elapsed / span)
        if count >= 1:
            return f"{_pluralize(count, unit)} ago"
    return "Just now"


def format_sent_date(moment: datetime, now: datetime) -> str:
    """Return a compact timestamp whose precision shrinks with age."""
    moment = ensure_utc(moment)
    now = ensure_utc(now)
    elapsed = now - moment
    for limit, pattern in _SENT_DATE_FORMATS:
        if elapsed < limit:
            return moment.strftime(pattern)
    if moment.year == now.year:
        return moment.strftime("%b %d %H:%M")
    return moment.strftime("%b %d, %Y")
