"""Outbound email transport and operator notifications."""

from .notifier import SmtpNotifier
from .smtp_client import OutgoingEmail, SmtpClient, SmtpError

__all__ = ["OutgoingEmail", "SmtpClient", "SmtpError", "SmtpNotifier"]
