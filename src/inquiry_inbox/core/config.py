"""Application configuration models and loader utilities."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import BaseModel, Field


class StorageSettings(BaseModel):
    """Settings for local persistence."""

    db_path: Path = Field(
        default=Path("./inquiry_inbox.db"), description="SQLite database path"
    )
    pool_size: int = Field(
        default=5, ge=1, description="Pooled connections used by the web app"
    )


class LoggingSettings(BaseModel):
    """Logging preferences."""

    level: str = Field(default="INFO", description="Root logging level")
    structured: bool = Field(
        default=False, description="Toggle key=value structured logging"
    )


class SmtpSettings(BaseModel):
    """Settings for the outbound SMTP connection."""

    host: str | None = Field(default=None, description="SMTP hostname")
    port: int = Field(default=587, description="SMTP port, 587 for STARTTLS")
    username: str | None = Field(default=None, description="Account username")
    password: str | None = Field(default=None, description="Account password")
    use_tls: bool = Field(
        default=True, description="Use STARTTLS instead of implicit SSL"
    )
    from_name: str | None = Field(
        default=None, description="Display name used in the From header"
    )
    timeout_seconds: int = Field(default=30, ge=1, description="Socket timeout")


class NotificationSettings(BaseModel):
    """Settings controlling operator notifications for new messages."""

    enabled: bool = Field(
        default=False, description="Email the operator when a message arrives"
    )
    admin_email: str | None = Field(
        default=None, description="Recipient of new-message notifications"
    )
    admin_name: str | None = Field(default=None, description="Recipient name")


class ClassifierSettings(BaseModel):
    """Parameters for read-time classification and presentation fields."""

    urgent_threshold_hours: int = Field(
        default=24, ge=0, description="Unread age after which a message is urgent"
    )
    preview_length: int = Field(
        default=100, ge=1, description="Maximum characters in body previews"
    )


class RetentionSettings(BaseModel):
    """Settings for the age-based retention sweep."""

    max_age_days: int = Field(
        default=365, ge=0, description="Default age cut-off for purge runs"
    )


class AppSettings(BaseModel):
    """Aggregated application configuration."""

    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    smtp: SmtpSettings = Field(default_factory=SmtpSettings)
    notification: NotificationSettings = Field(default_factory=NotificationSettings)
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    retention: RetentionSettings = Field(default_factory=RetentionSettings)


ENV_PREFIX = "INQUIRY_INBOX_"


def _normalize_key(raw_key: str) -> list[str]:
    """Convert an environment variable key into a nested attribute path."""
    trimmed = raw_key.removeprefix(ENV_PREFIX)
    return [segment.lower() for segment in trimmed.split("__") if segment]


def _merge_into_tree(tree: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a value to a nested dictionary given a path."""
    cursor = tree
    for segment in path[:-1]:
        next_node = cursor.setdefault(segment, {})
        cursor = cast(dict[str, Any], next_node)
    cursor[path[-1]] = value


def _coerce_value(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if value == "":
        return None
    lowercase_value = value.lower()
    if lowercase_value == "true":
        return True
    if lowercase_value == "false":
        return False
    return value


def _collect_env_values(
    env_file: Path | str | None, include_environment: bool
) -> dict[str, Any]:
    """Load configuration values from environment variables and optional file."""
    collected: dict[str, Any] = {}

    file_values = {}
    if env_file:
        env_path = Path(env_file)
        if env_path.is_file():
            file_values = {
                key: value
                for key, value in dotenv_values(env_path).items()
                if key and key.startswith(ENV_PREFIX)
            }

    env_values = {}
    if include_environment:
        env_values = {
            key: value
            for key, value in os.environ.items()
            if key.startswith(ENV_PREFIX)
        }

    combined: dict[str, Any] = {**file_values, **env_values}

    for key, value in combined.items():
        path = _normalize_key(key)
        if not path:
            continue
        _merge_into_tree(collected, path, _coerce_value(value))

    return collected


@lru_cache(maxsize=1)
def load_app_settings(
    env_file: Path | str | None = None,
    include_environment: bool = True,
    **overrides: Any,
) -> AppSettings:
    """Load application settings, applying env files and overrides."""
    collected = _collect_env_values(env_file, include_environment)
    if overrides:
        collected.update(overrides)
    return AppSettings.model_validate(collected)


__all__ = [
    "AppSettings",
    "ClassifierSettings",
    "LoggingSettings",
    "NotificationSettings",
    "RetentionSettings",
    "SmtpSettings",
    "StorageSettings",
    "load_app_settings",
]
