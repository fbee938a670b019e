"""Inbox statistics computed from the current record set."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from datetime import date, datetime, timedelta

from inquiry_inbox.core.datetime_utils import ensure_utc, utc_now
from inquiry_inbox.core.interfaces import MessageRepository
from inquiry_inbox.core.models import (
    DailyStats,
    DomainStats,
    Message,
    RangeStatistics,
    StatisticsReport,
)

LOGGER = logging.getLogger(__name__)

URGENT_THRESHOLD_HOURS = 24
TOP_DOMAIN_LIMIT = 5
DAILY_SERIES_DAYS = 30
_TODAY, _WEEK, _MONTH = 1, 7, 30


def _percentage(part: int, whole: int) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def top_domains(
    messages: Sequence[Message], total: int, limit: int = TOP_DOMAIN_LIMIT
) -> tuple[DomainStats, ...]:
    """Rank sender domains by volume; ties are ordered by domain name."""
    counts = Counter(message.domain() for message in messages)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return tuple(
        DomainStats(
            domain=domain,
            message_count=count,
            percentage=_percentage(count, total),
        )
        for domain, count in ranked[:limit]
    )


def daily_series(
    messages: Sequence[Message], today: date, days: int = DAILY_SERIES_DAYS
) -> tuple[DailyStats, ...]:
    """Return one entry per UTC day from ``days - 1`` days ago through today."""
    totals: Counter[date] = Counter()
    unread: Counter[date] = Counter()
    for message in messages:
        sent_day = message.sent_at.date()
        totals[sent_day] += 1
        if not message.is_read:
            unread[sent_day] += 1

    series = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        series.append(
            DailyStats(date=day, message_count=totals[day], unread_count=unread[day])
        )
    return tuple(series)


class StatisticsAggregator:
    """Build statistics reports by rescanning the repository on every call."""

    def __init__(self, repository: MessageRepository) -> None:
        self._repository = repository

    def build_report(self, now: datetime | None = None) -> StatisticsReport:
        """Compute the full dashboard report as of ``now``."""
        current = ensure_utc(now) if now is not None else utc_now()
        repository = self._repository

        total = repository.count()
        unread = repository.count_unread()
        read = total - unread
        urgent = len(repository.get_urgent(URGENT_THRESHOLD_HOURS, now=current))
        today_count = len(repository.get_recent(_TODAY, now=current))
        week_count = len(repository.get_recent(_WEEK, now=current))
        month_count = len(repository.get_recent(_MONTH, now=current))

        all_messages = repository.get_all()
        report = StatisticsReport(
            total_messages=total,
            unread_messages=unread,
            read_messages=read,
            urgent_messages=urgent,
            today_messages=today_count,
            week_messages=week_count,
            month_messages=month_count,
            average_messages_per_day=month_count / float(_MONTH),
            read_percentage=_percentage(read, total),
            top_domains=top_domains(all_messages, total),
            daily_stats=daily_series(all_messages, current.date()),
        )
        LOGGER.debug(
            "Built statistics report: %d total, %d unread, %d urgent",
            total,
            unread,
            urgent,
        )
        return report

    def range_counts(self, start: datetime, end: datetime) -> RangeStatistics:
        """Return the read/unread split for messages sent in ``[start, end]``."""
        total, read, unread = self._repository.count_in_range(start, end)
        return RangeStatistics(total=total, read=read, unread=unread)


__all__ = [
    "StatisticsAggregator",
    "daily_series",
    "top_domains",
]
