"""Operator notification for newly submitted contact messages."""

from __future__ import annotations

import logging
from collections.abc import Callable

from inquiry_inbox.core.config import NotificationSettings, SmtpSettings
from inquiry_inbox.core.models import Message

from .smtp_client import OutgoingEmail, SmtpClient, SmtpError

LOGGER = logging.getLogger(__name__)


def notification_subject(message: Message) -> str:
    return f"New Contact Message from {message.sender_name}: {message.subject}"


def notification_body(message: Message) -> str:
    """Render the plain text body forwarded to the operator."""
    return (
        "New Contact Message\n\n"
        f"From: {message.sender_name} ({message.sender_email})\n"
        f"Subject: {message.subject}\n\n"
        "Message:\n"
        f"{message.body}\n"
    )


class SmtpNotifier:
    """Email the configured admin address whenever a message is accepted.

    Delivery problems never propagate: ``notify`` logs them and returns
    ``False`` so message intake is unaffected.
    """

    def __init__(
        self,
        smtp_settings: SmtpSettings,
        notification_settings: NotificationSettings,
        *,
        client_factory: Callable[[SmtpSettings], SmtpClient] = SmtpClient,
    ) -> None:
        self._smtp_settings = smtp_settings
        self._settings = notification_settings
        self._client_factory = client_factory

    @property
    def is_configured(self) -> bool:
        return bool(
            self._settings.enabled
            and self._settings.admin_email
            and self._smtp_settings.host
        )

    def build_email(self, message: Message) -> OutgoingEmail:
        return OutgoingEmail(
            to=self._settings.admin_email or "",
            to_name=self._settings.admin_name,
            subject=notification_subject(message),
            body=notification_body(message),
            reply_to=message.sender_email.value,
        )

    def notify(self, message: Message) -> bool:
        if not self.is_configured:
            LOGGER.debug("Notifications disabled; skipping message %s", message.id)
            return False

        email = self.build_email(message)
        try:
            with self._client_factory(self._smtp_settings) as client:
                client.send(email)
        except SmtpError as exc:
            LOGGER.warning(
                "Failed to send notification for message %s: %s", message.id, exc
            )
            return False

        LOGGER.info("Sent notification for message %s to %s", message.id, email.to)
        return True


__all__ = ["SmtpNotifier", "notification_body", "notification_subject"]
