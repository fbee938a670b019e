"""Tests for the command-line entry point."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from inquiry_inbox.cli import main
from inquiry_inbox.core.config import StorageSettings, load_app_settings
from inquiry_inbox.core.datetime_utils import utc_now
from inquiry_inbox.core.models import Message
from inquiry_inbox.storage import SqliteMessageRepository


@pytest.fixture
def db_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "cli.db"
    monkeypatch.setenv("INQUIRY_INBOX_STORAGE__DB_PATH", str(path))
    load_app_settings.cache_clear()
    yield path
    load_app_settings.cache_clear()


def _seed(path: Path) -> list[int]:
    now = utc_now()
    with SqliteMessageRepository(StorageSettings(db_path=path)) as repository:
        return [
            repository.add(
                Message.create(
                    "Jane Doe",
                    "jane@example.com",
                    f"Question {index}",
                    "Could you send me more details?",
                    sent_at=now - timedelta(days=days),
                    now=now,
                )
            ).id
            for index, days in enumerate((0, 2, 500))
        ]


def test_info_prints_database_path(db_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["info"]) == 0
    assert str(db_path) in capsys.readouterr().out


def test_list_and_mark_read(db_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    ids = _seed(db_path)

    assert main(["list", "--urgent"]) == 0
    output = capsys.readouterr().out
    assert "Showing 2 message(s)" in output

    assert main(["mark-read", str(ids[0]), str(ids[1])]) == 0
    assert "Marked 2 message(s) as read." in capsys.readouterr().out

    assert main(["list", "--unread"]) == 0
    assert "Showing 1 message(s)" in capsys.readouterr().out


def test_purge_and_stats(db_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _seed(db_path)

    assert main(["purge"]) == 0
    assert "Purged 1 message(s) older than 365 day(s)." in capsys.readouterr().out

    assert main(["stats"]) == 0
    assert "Total messages:  2" in capsys.readouterr().out


def test_mark_read_without_ids_fails(db_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["mark-read"]) == 2
    assert "requires at least one message id" in capsys.readouterr().out
