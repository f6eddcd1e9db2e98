"""Notifier implementations for milestone emails."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import List, Optional, Tuple

from .collaborators import Notifier
from .config import Settings, get_settings
from .exceptions import NotificationError

logger = logging.getLogger(__name__)


class SmtpNotifier:
    """Send HTML email through an SMTP relay with a bounded socket timeout."""

    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: str,
        sender_name: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender = sender
        self._sender_name = sender_name
        self._use_tls = use_tls
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpNotifier":
        if not settings.smtp_host:
            raise RuntimeError("MILESTONE_SMTP_HOST must be configured to send milestone email.")
        sender = settings.smtp_from or settings.smtp_username
        if not sender:
            raise RuntimeError("MILESTONE_SMTP_FROM or MILESTONE_SMTP_USERNAME must be configured.")
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            sender=sender,
            sender_name=settings.smtp_from_name,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout,
        )

    def build_message(self, recipient: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = f"{self._sender_name} <{self._sender}>" if self._sender_name else self._sender
        message["To"] = recipient
        message.set_content(body, subtype="html")
        return message

    def send(self, recipient: str, subject: str, body: str) -> None:
        message = self.build_message(recipient, subject, body)
        use_ssl = self._port == 465
        try:
            client_cls = smtplib.SMTP_SSL if use_ssl else smtplib.SMTP
            with client_cls(self._host, self._port, timeout=self._timeout) as server:
                if logger.isEnabledFor(logging.DEBUG):
                    server.set_debuglevel(1)
                if self._use_tls and not use_ssl:
                    server.starttls()
                if self._username and self._password:
                    server.login(self._username, self._password)
                server.send_message(message)
        except smtplib.SMTPAuthenticationError as exc:
            raise NotificationError(f"SMTP authentication failed for {self._username}") from exc
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"SMTP delivery to {recipient} failed: {exc}") from exc
        logger.info("Milestone email sent to %s: %s", recipient, subject)


class LoggingNotifier:
    """Record notifications in the log instead of delivering them."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str]] = []

    def send(self, recipient: str, subject: str, body: str) -> None:
        self.sent.append((recipient, subject))
        logger.info("Milestone notification for %s: %s (%d bytes)", recipient, subject, len(body))


def build_notifier(settings: Optional[Settings] = None) -> Notifier:
    settings = settings or get_settings()
    if settings.notifier == "smtp":
        return SmtpNotifier.from_settings(settings)
    return LoggingNotifier()


__all__ = ["LoggingNotifier", "SmtpNotifier", "build_notifier"]
