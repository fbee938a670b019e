"""Tests for the message record and its value objects."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from inquiry_inbox.core.errors import ValidationError
from inquiry_inbox.core.models import EmailAddress, Message

NOW = datetime(2025, 10, 24, 15, 0, tzinfo=timezone.utc)


def _message(**overrides) -> Message:
    fields = {
        "sender_name": "Jane Doe",
        "sender_email": "jane@example.com",
        "subject": "Project inquiry",
        "body": "I would like to discuss a project with you.",
        "now": NOW,
    }
    fields.update(overrides)
    return Message.create(
        fields.pop("sender_name"),
        fields.pop("sender_email"),
        fields.pop("subject"),
        fields.pop("body"),
        **fields,
    )


def test_create_trims_fields_and_lowercases_email() -> None:
    message = _message(
        sender_name="  Jane Doe  ",
        sender_email="  Jane.Doe@Example.COM ",
        subject="  Hello there  ",
        body="  A message that is long enough.  ",
    )

    assert message.sender_name == "Jane Doe"
    assert message.sender_email.value == "jane.doe@example.com"
    assert message.subject == "Hello there"
    assert message.body == "A message that is long enough."
    assert message.sent_at == NOW
    assert message.is_read is False
    assert message.id is None


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("sender_name", "J"),
        ("sender_name", "x" * 101),
        ("sender_name", "   "),
        ("subject", "Hi"),
        ("subject", "s" * 201),
        ("body", "too short"),
        ("body", "b" * 5001),
    ],
)
def test_create_rejects_out_of_bounds_text(field: str, value: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        _message(**{field: value})
    assert excinfo.value.field == field


def test_create_accepts_boundary_lengths() -> None:
    message = _message(sender_name="Al", subject="Hey", body="0123456789")
    assert message.sender_name == "Al"
    assert message.subject == "Hey"
    assert message.body == "0123456789"


@pytest.mark.parametrize(
    "email",
    ["", "   ", "plainaddress", "missing@tld", "a@b.c", "@example.com"],
)
def test_invalid_email_rejected(email: str) -> None:
    with pytest.raises(ValidationError):
        EmailAddress(email)


def test_email_longer_than_limit_rejected() -> None:
    local = "a" * 250
    with pytest.raises(ValidationError):
        EmailAddress(f"{local}@example.com")


def test_email_domain_and_local_part() -> None:
    address = EmailAddress("Sales@Shop.Example.org")
    assert address.value == "sales@shop.example.org"
    assert address.domain == "shop.example.org"
    assert address.local_part == "sales"
    assert str(address) == "sales@shop.example.org"


def test_create_rejects_future_timestamp() -> None:
    with pytest.raises(ValidationError):
        _message(sent_at=NOW + timedelta(minutes=1))


def test_validation_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        _message(subject="")


def test_mark_read_and_unread_are_idempotent() -> None:
    message = _message()
    snapshot = (message.sender_name, message.sender_email, message.subject, message.sent_at)

    message.mark_read()
    message.mark_read()
    assert message.is_read is True

    message.mark_unread()
    message.mark_unread()
    assert message.is_read is False
    assert (
        message.sender_name,
        message.sender_email,
        message.subject,
        message.sent_at,
    ) == snapshot


def test_age_is_whole_hours_and_days() -> None:
    message = _message(sent_at=NOW - timedelta(days=2, hours=5, minutes=59))
    assert message.age_in_hours(NOW) == 53
    assert message.age_in_days(NOW) == 2


def test_preview_returns_short_body_unchanged() -> None:
    message = _message(body="Short but valid body")
    assert message.preview() == "Short but valid body"


def test_preview_cuts_at_word_boundary() -> None:
    body = "word " * 40
    message = _message(body=body)
    preview = message.preview(22)
    assert preview == "word word word word..."
    assert len(preview) <= 22 + 3


def test_preview_without_whitespace_cuts_hard() -> None:
    message = _message(body="x" * 150)
    assert message.preview(100) == "x" * 100 + "..."


def test_word_count_and_domain() -> None:
    message = _message(body="one two  three\nfour\tfive", sender_email="a@Mail.io")
    assert message.word_count() == 5
    assert message.domain() == "mail.io"


def test_with_id_returns_copy() -> None:
    message = _message()
    stored = message.with_id(7)
    assert stored.id == 7
    assert message.id is None
    assert stored.subject == message.subject
