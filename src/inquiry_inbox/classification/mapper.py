"""Build presentation views and reply drafts from stored messages."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from inquiry_inbox.core.config import ClassifierSettings
from inquiry_inbox.core.datetime_utils import format_relative_time, format_sent_date
from inquiry_inbox.core.models import Message, MessageView, ReplyDraft

from .priority import classify

_REPLY_PREFIX = "Re:"
_FALLBACK_REPLY_SUBJECT = "Re: Your Message"


def build_message_view(
    message: Message, now: datetime, settings: ClassifierSettings
) -> MessageView:
    """Return ``message`` enriched with classification and display fields."""
    classification = classify(message, now, settings.urgent_threshold_hours)
    return MessageView(
        id=message.id,
        sender_name=message.sender_name,
        sender_email=message.sender_email.value,
        sender_domain=message.domain(),
        subject=message.subject,
        body=message.body,
        preview=message.preview(settings.preview_length),
        sent_at=message.sent_at,
        formatted_sent_date=format_sent_date(message.sent_at, now),
        relative_time=format_relative_time(message.sent_at, now),
        is_read=message.is_read,
        age_in_days=message.age_in_days(now),
        age_in_hours=message.age_in_hours(now),
        is_urgent=classification.is_urgent,
        priority=classification.priority,
        is_potential_spam=classification.is_potential_spam,
        message_length=len(message.body),
        word_count=message.word_count(),
    )


def build_message_views(
    messages: Iterable[Message], now: datetime, settings: ClassifierSettings
) -> list[MessageView]:
    """Map a sequence of messages, preserving order."""
    return [build_message_view(message, now, settings) for message in messages]


def reply_subject(original_subject: str) -> str:
    """Prefix ``Re:`` unless the subject already carries it."""
    subject = original_subject.strip()
    if not subject:
        return _FALLBACK_REPLY_SUBJECT
    if subject.lower().startswith(_REPLY_PREFIX.lower()):
        return subject
    return f"{_REPLY_PREFIX} {subject}"


def build_reply_draft(message: Message) -> ReplyDraft:
    """Return a reply skeleton addressed to the original sender."""
    template = (
        f"Hi {message.sender_name},\n\n"
        "Thank you for reaching out. I appreciate your message and will get "
        "back to you as soon as possible.\n\n"
        "Best regards,\n"
    )
    return ReplyDraft(
        original_message_id=message.id,
        to_email=message.sender_email.value,
        to_name=message.sender_name,
        subject=reply_subject(message.subject),
        template=template,
        original_body=message.body,
    )


__all__ = [
    "build_message_view",
    "build_message_views",
    "build_reply_draft",
    "reply_subject",
]
