"""Tests for the statistics aggregator."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from inquiry_inbox.core.config import StorageSettings
from inquiry_inbox.core.models import Message
from inquiry_inbox.operations import StatisticsAggregator
from inquiry_inbox.operations.statistics import top_domains
from inquiry_inbox.storage import SqliteMessageRepository

NOW = datetime(2025, 10, 24, 15, 0, tzinfo=timezone.utc)


def _add(
    repository: SqliteMessageRepository,
    email: str,
    age: timedelta,
    *,
    read: bool = False,
) -> Message:
    message = Message.create(
        "Sam Sender",
        email,
        "General question",
        "Just a short note to say hello.",
        sent_at=NOW - age,
        now=NOW,
    )
    stored = repository.add(message)
    if read:
        repository.mark_read(stored.id)
    return stored


def test_empty_store_report(tmp_path: Path) -> None:
    with SqliteMessageRepository(StorageSettings(db_path=tmp_path / "stats.db")) as repo:
        report = StatisticsAggregator(repo).build_report(NOW)

    assert report.total_messages == 0
    assert report.read_percentage == 0.0
    assert report.average_messages_per_day == 0.0
    assert report.top_domains == ()
    assert len(report.daily_stats) == 30
    assert all(day.message_count == 0 for day in report.daily_stats)


def test_report_over_forty_days(tmp_path: Path) -> None:
    with SqliteMessageRepository(StorageSettings(db_path=tmp_path / "stats.db")) as repo:
        for day in range(40):
            _add(repo, "a@alpha.com", timedelta(days=day, hours=1), read=day % 2 == 0)
        _add(repo, "b@beta.com", timedelta(hours=30))
        _add(repo, "c@beta.com", timedelta(minutes=5))

        report = StatisticsAggregator(repo).build_report(NOW)

    assert report.total_messages == 42
    assert report.unread_messages + report.read_messages == report.total_messages
    assert report.read_messages == 20
    assert report.read_percentage == pytest.approx(20 / 42 * 100)
    assert report.today_messages == 2
    assert report.week_messages == 9
    assert report.month_messages == 32
    assert report.average_messages_per_day == pytest.approx(32 / 30)

    daily = report.daily_stats
    assert len(daily) == 30
    assert daily[0].date == date(2025, 9, 25)
    assert daily[-1].date == date(2025, 10, 24)
    assert daily[-1].label == "Oct 24"
    assert sum(day.message_count for day in daily) <= report.total_messages
    assert all(day.read_count + day.unread_count == day.message_count for day in daily)
    assert all(day.message_count >= 0 and day.unread_count >= 0 for day in daily)

    domains = report.top_domains
    assert [d.domain for d in domains] == ["alpha.com", "beta.com"]
    assert domains[0].message_count == 40
    assert domains[0].percentage == pytest.approx(40 / 42 * 100)


def test_urgent_count_uses_day_threshold(tmp_path: Path) -> None:
    with SqliteMessageRepository(StorageSettings(db_path=tmp_path / "stats.db")) as repo:
        _add(repo, "a@alpha.com", timedelta(hours=23))
        _add(repo, "a@alpha.com", timedelta(hours=25))
        _add(repo, "a@alpha.com", timedelta(days=3), read=True)

        report = StatisticsAggregator(repo).build_report(NOW)

    assert report.urgent_messages == 1


def test_top_domains_limits_and_breaks_ties_by_name(tmp_path: Path) -> None:
    with SqliteMessageRepository(StorageSettings(db_path=tmp_path / "stats.db")) as repo:
        for domain in ["zeta.io", "eta.io", "theta.io", "iota.io", "kappa.io", "beta.io"]:
            _add(repo, f"x@{domain}", timedelta(hours=1))
        _add(repo, "y@zeta.io", timedelta(hours=2))
        messages = repo.get_all()

    ranked = top_domains(messages, len(messages))
    assert [d.domain for d in ranked] == [
        "zeta.io",
        "beta.io",
        "eta.io",
        "iota.io",
        "kappa.io",
    ]


def test_range_counts(tmp_path: Path) -> None:
    with SqliteMessageRepository(StorageSettings(db_path=tmp_path / "stats.db")) as repo:
        _add(repo, "a@alpha.com", timedelta(days=1), read=True)
        _add(repo, "a@alpha.com", timedelta(days=2))
        _add(repo, "a@alpha.com", timedelta(days=9))

        stats = StatisticsAggregator(repo).range_counts(NOW - timedelta(days=7), NOW)

    assert (stats.total, stats.read, stats.unread) == (2, 1, 1)
