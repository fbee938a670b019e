"""Core models, configuration, logging, and dependency wiring."""

from .config import (
    AppSettings,
    ClassifierSettings,
    NotificationSettings,
    SmtpSettings,
    StorageSettings,
    load_app_settings,
)
from .container import ServiceContainer
from .errors import InquiryError, StorageError, ValidationError
from .logging import configure_logging

__all__ = [
    "AppSettings",
    "ClassifierSettings",
    "InquiryError",
    "NotificationSettings",
    "ServiceContainer",
    "SmtpSettings",
    "StorageError",
    "StorageSettings",
    "ValidationError",
    "configure_logging",
    "load_app_settings",
]
