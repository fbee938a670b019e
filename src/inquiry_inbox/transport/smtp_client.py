"""Outbound SMTP client used for operator notifications."""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from inquiry_inbox.core import SmtpSettings

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OutgoingEmail:
    """Plain text email queued for delivery.

    Attributes:
        to: Recipient address
        subject: Subject line
        body: Plain text body
        to_name: Optional recipient display name
        reply_to: Address replies should go to, usually the original sender
    """

    to: str
    subject: str
    body: str
    to_name: str | None = None
    reply_to: str | None = None


class SmtpError(Exception):
    """Raised when connecting, authenticating or sending fails."""


class SmtpClient:
    """Thin wrapper around :mod:`smtplib` with connection management.

    Example:
        >>> with SmtpClient(settings.smtp) as client:
        ...     client.send(OutgoingEmail(to="ops@example.com", subject="Hi", body="..."))
    """

    def __init__(self, settings: SmtpSettings) -> None:
        self._settings = settings
        self._connection: smtplib.SMTP | None = None

    def __enter__(self) -> SmtpClient:
        self.connect()
        return self

    def __exit__(self, *args: object) -> None:
        self.disconnect()

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def connect(self) -> None:
        """Open the connection and log in when credentials are configured.

        Raises:
            SmtpError: If the host is missing or the server rejects us
        """
        settings = self._settings
        if not settings.host:
            raise SmtpError("SMTP host not configured")

        LOGGER.debug("Connecting to SMTP server %s:%d", settings.host, settings.port)
        try:
            if settings.use_tls:
                self._connection = smtplib.SMTP(
                    settings.host, settings.port, timeout=settings.timeout_seconds
                )
                self._connection.starttls()
            else:
                self._connection = smtplib.SMTP_SSL(
                    settings.host, settings.port, timeout=settings.timeout_seconds
                )

            if settings.username and settings.password:
                self._connection.login(settings.username, settings.password)
                LOGGER.debug("Authenticated to SMTP server as %s", settings.username)
        except smtplib.SMTPAuthenticationError as exc:
            self._connection = None
            LOGGER.error("SMTP authentication failed: %s", exc)
            raise SmtpError(f"SMTP authentication failed: {exc}") from exc
        except smtplib.SMTPException as exc:
            self._connection = None
            LOGGER.error("SMTP error while connecting: %s", exc)
            raise SmtpError(f"SMTP error: {exc}") from exc
        except OSError as exc:
            self._connection = None
            LOGGER.error("Network error connecting to SMTP server: %s", exc)
            raise SmtpError(f"Network error: {exc}") from exc

        LOGGER.info("Connected to SMTP server %s", settings.host)

    def disconnect(self) -> None:
        """Close the connection, ignoring errors from an already dead peer."""
        if self._connection is None:
            return
        try:
            self._connection.quit()
        except (smtplib.SMTPException, OSError) as exc:
            LOGGER.warning("Error closing SMTP connection: %s", exc)
        finally:
            self._connection = None

    def send(self, email: OutgoingEmail) -> None:
        """Deliver ``email``.

        Raises:
            SmtpError: If not connected or any recipient is refused
        """
        if self._connection is None:
            raise SmtpError("Not connected to SMTP server")

        mime_message = self._build_mime_message(email)
        try:
            refused = self._connection.send_message(mime_message)
        except smtplib.SMTPRecipientsRefused as exc:
            LOGGER.error("All recipients refused: %s", exc)
            raise SmtpError(f"All recipients refused: {exc}") from exc
        except smtplib.SMTPException as exc:
            LOGGER.error("Failed to send email: %s", exc)
            raise SmtpError(f"Failed to send email: {exc}") from exc

        if refused:
            LOGGER.warning("Some recipients were refused: %s", refused)
            raise SmtpError(f"Some recipients were refused: {refused}")
        LOGGER.info("Email sent to %s: %s", email.to, email.subject)

    def _build_mime_message(self, email: OutgoingEmail) -> MIMEMultipart:
        mime_msg = MIMEMultipart()
        sender = self._settings.username or ""
        mime_msg["From"] = (
            formataddr((self._settings.from_name, sender))
            if self._settings.from_name
            else sender
        )
        mime_msg["To"] = (
            formataddr((email.to_name, email.to)) if email.to_name else email.to
        )
        mime_msg["Subject"] = email.subject
        if email.reply_to:
            mime_msg["Reply-To"] = email.reply_to
        mime_msg.attach(MIMEText(email.body, "plain", "utf-8"))
        return mime_msg


__all__ = ["OutgoingEmail", "SmtpClient", "SmtpError"]
