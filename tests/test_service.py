"""Tests for the async inquiry service."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from inquiry_inbox.core.config import ClassifierSettings, StorageSettings
from inquiry_inbox.core.errors import ValidationError
from inquiry_inbox.core.models import BulkAction, Message, MessageQuery
from inquiry_inbox.operations import InquiryService
from inquiry_inbox.storage import SqliteMessageRepository

NOW = datetime(2025, 10, 24, 15, 0, tzinfo=timezone.utc)


class RecordingNotifier:
    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.notified: list[Message] = []

    def notify(self, message: Message) -> bool:
        self.notified.append(message)
        return self.result


class ExplodingNotifier:
    def notify(self, message: Message) -> bool:
        raise ConnectionError("mail server unreachable")


@pytest.fixture
def repository(tmp_path: Path):
    repo = SqliteMessageRepository(StorageSettings(db_path=tmp_path / "service.db"))
    yield repo
    repo.close()


def _service(repository: SqliteMessageRepository, **kwargs) -> InquiryService:
    return InquiryService(repository, clock=lambda: NOW, **kwargs)


def _store(
    repository: SqliteMessageRepository,
    *,
    email: str = "jane@example.com",
    subject: str = "Project inquiry",
    body: str = "I would like to discuss a project with you.",
    age: timedelta = timedelta(0),
    read: bool = False,
) -> Message:
    message = Message.create(
        "Jane Doe", email, subject, body, sent_at=NOW - age, now=NOW
    )
    stored = repository.add(message)
    if read:
        repository.mark_read(stored.id)
    return stored


def test_submit_message_persists_and_notifies(repository) -> None:
    notifier = RecordingNotifier()
    service = _service(repository, notifier=notifier)

    view = asyncio.run(
        service.submit_message(
            "Jane Doe", "JANE@Example.COM", "Need help ASAP", "This is a 10+ character message"
        )
    )

    assert view.id is not None
    assert view.sender_email == "jane@example.com"
    assert view.is_read is False
    assert view.relative_time == "Just now"
    assert repository.count() == 1
    assert [m.id for m in notifier.notified] == [view.id]


def test_submit_message_rejects_invalid_input(repository) -> None:
    notifier = RecordingNotifier()
    service = _service(repository, notifier=notifier)

    with pytest.raises(ValidationError):
        asyncio.run(service.submit_message("J", "jane@example.com", "Hello", "Long enough body"))
    assert repository.count() == 0
    assert notifier.notified == []


@pytest.mark.parametrize("notifier", [RecordingNotifier(result=False), ExplodingNotifier()])
def test_notifier_failure_does_not_fail_submission(
    repository, notifier, caplog: pytest.LogCaptureFixture
) -> None:
    service = _service(repository, notifier=notifier)

    with caplog.at_level(logging.WARNING, logger="inquiry_inbox.operations.service"):
        view = asyncio.run(
            service.submit_message(
                "Jane Doe", "jane@example.com", "Hello there", "A perfectly fine message."
            )
        )

    assert view.id is not None
    assert repository.count() == 1
    assert any("Notification" in record.getMessage() for record in caplog.records)


def test_search_precedence_prefers_term_over_other_filters(repository) -> None:
    match = _store(repository, subject="Pricing question")
    _store(repository, email="other@example.com", read=True)
    service = _service(repository)

    query = MessageQuery(
        search_term="pricing", sender_email="other@example.com", is_read=True
    )
    views = asyncio.run(service.search(query))

    assert [view.id for view in views] == [match.id]


def test_search_precedence_sender_then_dates_then_flags(repository) -> None:
    alice_old = _store(repository, email="alice@example.com", age=timedelta(days=10))
    bob_new = _store(repository, email="bob@example.com", read=True)
    carol_mid = _store(repository, email="carol@example.com", age=timedelta(days=2))
    service = _service(repository)

    by_sender = asyncio.run(
        service.search(MessageQuery(sender_email="ALICE@example.com", days_back=1))
    )
    assert [v.id for v in by_sender] == [alice_old.id]

    by_dates = asyncio.run(
        service.search(
            MessageQuery(
                start_date=NOW - timedelta(days=3),
                end_date=NOW - timedelta(days=1),
                days_back=30,
            )
        )
    )
    assert [v.id for v in by_dates] == [carol_mid.id]

    start_only = asyncio.run(
        service.search(MessageQuery(start_date=NOW - timedelta(days=3), days_back=1))
    )
    assert [v.id for v in start_only] == [bob_new.id]

    unread = asyncio.run(service.search(MessageQuery(is_read=False, is_urgent=True)))
    assert [v.id for v in unread] == [carol_mid.id, alice_old.id]

    read = asyncio.run(service.search(MessageQuery(is_read=True)))
    assert [v.id for v in read] == [bob_new.id]

    urgent = asyncio.run(service.search(MessageQuery(is_urgent=True)))
    assert [v.id for v in urgent] == [alice_old.id, carol_mid.id]

    everything = asyncio.run(service.search(MessageQuery(is_urgent=False)))
    assert [v.id for v in everything] == [bob_new.id, carol_mid.id, alice_old.id]


def test_search_skip_and_take(repository) -> None:
    stored = [_store(repository, age=timedelta(hours=hours)) for hours in range(5)]
    service = _service(repository)

    views = asyncio.run(service.search(MessageQuery(skip=1, take=2)))
    assert [v.id for v in views] == [stored[1].id, stored[2].id]

    tail = asyncio.run(service.search(MessageQuery(skip=4)))
    assert [v.id for v in tail] == [stored[4].id]

    with pytest.raises(ValidationError):
        asyncio.run(service.search(MessageQuery(skip=-1)))
    with pytest.raises(ValidationError):
        asyncio.run(service.search(MessageQuery(take=-5)))


def test_urgent_threshold_comes_from_settings(repository) -> None:
    stored = _store(repository, age=timedelta(hours=5))
    service = _service(repository, settings=ClassifierSettings(urgent_threshold_hours=4))

    assert [v.id for v in asyncio.run(service.list_urgent())] == [stored.id]
    assert asyncio.run(service.list_urgent(threshold_hours=6)) == []

    view = asyncio.run(service.get_message(stored.id))
    assert view is not None and view.is_urgent is True


def test_single_message_mutations(repository) -> None:
    stored = _store(repository)
    service = _service(repository)

    assert asyncio.run(service.get_message(999)) is None
    assert asyncio.run(service.mark_read(stored.id)) is True
    assert asyncio.run(service.get_message(stored.id)).is_read is True
    assert asyncio.run(service.mark_unread(stored.id)) is True
    assert asyncio.run(service.delete_message(stored.id)) is True
    assert asyncio.run(service.delete_message(stored.id)) is False
    assert asyncio.run(service.mark_read(stored.id)) is False


def test_bulk_action_and_purge(repository) -> None:
    first = _store(repository)
    second = _store(repository)
    old = _store(repository, age=timedelta(days=400))
    service = _service(repository)

    result = asyncio.run(service.perform_bulk_action([first.id, second.id], "mark_read"))
    assert result.action is BulkAction.MARK_READ
    assert result.affected_count == 2
    assert asyncio.run(service.mark_many_read([first.id])) == 0

    with pytest.raises(ValidationError):
        asyncio.run(service.perform_bulk_action([first.id], "archive"))

    assert asyncio.run(service.purge_older_than(365)) == 1
    assert asyncio.run(service.get_message(old.id)) is None


def test_listing_helpers(repository) -> None:
    read = _store(repository, age=timedelta(days=2), read=True)
    recent = _store(repository, email="new@example.com")
    service = _service(repository)

    assert [v.id for v in asyncio.run(service.list_messages())] == [recent.id, read.id]
    assert [v.id for v in asyncio.run(service.list_unread())] == [recent.id]
    assert [v.id for v in asyncio.run(service.list_read())] == [read.id]
    assert [v.id for v in asyncio.run(service.list_recent(1))] == [recent.id]
    assert [v.id for v in asyncio.run(service.list_by_sender("new@example.com"))] == [
        recent.id
    ]
    assert [
        v.id
        for v in asyncio.run(
            service.list_by_date_range(NOW - timedelta(days=3), NOW - timedelta(days=1))
        )
    ] == [read.id]
    assert [v.id for v in asyncio.run(service.get_page(2, 1))] == [read.id]


def test_statistics_and_reply_draft(repository) -> None:
    stored = _store(repository, subject="Re: Earlier conversation", read=True)
    _store(repository, age=timedelta(days=2))
    service = _service(repository)

    report = asyncio.run(service.get_statistics())
    assert report.total_messages == 2
    assert report.read_messages == 1
    assert report.urgent_messages == 1

    stats = asyncio.run(service.get_range_statistics(NOW - timedelta(days=1), NOW))
    assert (stats.total, stats.read, stats.unread) == (1, 1, 0)

    draft = asyncio.run(service.draft_reply(stored.id))
    assert draft is not None
    assert draft.subject == "Re: Earlier conversation"
    assert asyncio.run(service.draft_reply(999)) is None
