"""Deterministic read-time classification of contact messages."""

from .mapper import build_message_view, build_message_views, build_reply_draft
from .priority import classify, is_urgent, score_priority
from .spam import is_potential_spam

__all__ = [
    "build_message_view",
    "build_message_views",
    "build_reply_draft",
    "classify",
    "is_potential_spam",
    "is_urgent",
    "score_priority",
]
