"""Heuristic urgency and priority scoring for contact messages."""

from __future__ import annotations

from datetime import datetime

from inquiry_inbox.core.models import Message, MessageClassification

from .spam import is_potential_spam

URGENT_KEYWORDS: tuple[str, ...] = (
    "urgent",
    "asap",
    "important",
    "emergency",
    "help",
    "problem",
    "issue",
    "bug",
    "error",
)

DEFAULT_URGENT_THRESHOLD_HOURS = 24
HIGHEST_PRIORITY = 1
LOWEST_PRIORITY = 5
_BASELINE_PRIORITY = 3
_STALE_AFTER_HOURS = 72
_AGING_AFTER_HOURS = 24
_SPAM_PENALTY = 2


def is_urgent(
    message: Message,
    now: datetime,
    threshold_hours: int = DEFAULT_URGENT_THRESHOLD_HOURS,
) -> bool:
    """Unread messages waiting at least ``threshold_hours`` are urgent."""
    return not message.is_read and message.age_in_hours(now) >= threshold_hours


def has_urgent_keyword(subject: str, body: str) -> bool:
    """Return ``True`` when subject or body mentions an urgent keyword."""
    subject_lower = subject.lower()
    body_lower = body.lower()
    return any(
        keyword in subject_lower or keyword in body_lower
        for keyword in URGENT_KEYWORDS
    )


def score_priority(message: Message, now: datetime) -> int:
    """Return a priority from 1 (highest) to 5 (lowest)."""
    priority = _BASELINE_PRIORITY

    if not message.is_read:
        priority -= 1

    age_hours = message.age_in_hours(now)
    if age_hours > _STALE_AFTER_HOURS:
        priority -= 1
    elif age_hours > _AGING_AFTER_HOURS:
        # Aging but not stale: priority unchanged.
        pass

    if has_urgent_keyword(message.subject, message.body):
        priority -= 1

    if is_potential_spam(message.subject, message.body):
        priority += _SPAM_PENALTY

    return max(HIGHEST_PRIORITY, min(priority, LOWEST_PRIORITY))


def classify(
    message: Message,
    now: datetime,
    threshold_hours: int = DEFAULT_URGENT_THRESHOLD_HOURS,
) -> MessageClassification:
    """Compute the read-time classification of ``message`` at ``now``."""
    return MessageClassification(
        is_urgent=is_urgent(message, now, threshold_hours),
        priority=score_priority(message, now),
        is_potential_spam=is_potential_spam(message.subject, message.body),
    )


__all__ = [
    "DEFAULT_URGENT_THRESHOLD_HOURS",
    "URGENT_KEYWORDS",
    "classify",
    "has_urgent_keyword",
    "is_urgent",
    "score_priority",
]
