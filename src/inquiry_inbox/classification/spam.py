"""Heuristic spam detection for contact messages."""

from __future__ import annotations

SPAM_KEYWORDS: tuple[str, ...] = (
    "free",
    "win",
    "winner",
    "congratulations",
    "prize",
    "lottery",
    "casino",
    "viagra",
    "pharmacy",
    "pills",
    "weight loss",
    "make money",
    "work from home",
    "click here",
    "act now",
    "limited time",
    "offer expires",
    "100% free",
    "no obligation",
    "risk free",
    "satisfaction guaranteed",
)

_KEYWORD_THRESHOLD = 2
_SHOUTING_MIN_SUBJECT_LENGTH = 10
_SHOUTING_RATIO = 0.7
_MAX_SUBJECT_EXCLAMATIONS = 3
_MAX_BODY_EXCLAMATIONS = 10


def count_spam_keywords(subject: str, body: str) -> int:
    """Return how many distinct spam keywords occur in subject or body."""
    subject_lower = subject.lower()
    body_lower = body.lower()
    return sum(
        1
        for keyword in SPAM_KEYWORDS
        if keyword in subject_lower or keyword in body_lower
    )


def _is_shouting(subject: str) -> bool:
    if len(subject) <= _SHOUTING_MIN_SUBJECT_LENGTH:
        return False
    uppercase = sum(1 for char in subject if char.isupper())
    return uppercase > len(subject) * _SHOUTING_RATIO


def is_potential_spam(subject: str, body: str) -> bool:
    """Return ``True`` when any spam heuristic fires."""
    if count_spam_keywords(subject, body) >= _KEYWORD_THRESHOLD:
        return True
    if _is_shouting(subject):
        return True
    return (
        subject.count("!") > _MAX_SUBJECT_EXCLAMATIONS
        or body.count("!") > _MAX_BODY_EXCLAMATIONS
    )


__all__ = ["SPAM_KEYWORDS", "count_spam_keywords", "is_potential_spam"]
