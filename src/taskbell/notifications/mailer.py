# src/taskbell/notifications/mailer.py

from __future__ import annotations

import logging
import smtplib
import ssl
import threading
from dataclasses import dataclass
from email.message import EmailMessage

from ..errors import DeliveryError

logger = logging.getLogger(__name__)


def split_recipients(recipient: str) -> list[str]:
    """"a@x, b@y" -> ["a@x", "b@y"]."""
    return [r.strip() for r in (recipient or "").split(",") if r.strip()]


class SmtpMailChannel:
    """
    SMTP mail transport (STARTTLS + login by default, e.g. smtp.gmail.com:587).

    A new SMTP connection is opened per message: reminder sweeps are infrequent and
    a long-lived connection would time out between them anyway.
    Any transport failure is raised as DeliveryError.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        sender: str,
        username: str = "",
        password: str = "",
        starttls: bool = True,
        timeout_seconds: float = 20.0,
    ) -> None:
        if not host:
            raise ValueError("SMTP host is required")
        if not sender:
            raise ValueError("SMTP sender is required")
        self._host = host
        self._port = int(port)
        self._sender = sender
        self._username = username
        self._password = password
        self._starttls = starttls
        self._timeout = float(timeout_seconds)

    @classmethod
    def from_settings(cls, settings) -> SmtpMailChannel:
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.smtp_sender,
            username=settings.smtp_username,
            password=settings.smtp_password,
            starttls=settings.smtp_starttls,
            timeout_seconds=settings.smtp_timeout_seconds,
        )

    def _build_message(self, recipients: list[str], subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self._sender
        msg["To"] = ", ".join(recipients)
        msg["Subject"] = subject or ""
        msg.set_content(body or "")
        return msg

    def send_mail(self, recipient: str, subject: str, body: str) -> None:
        recipients = split_recipients(recipient)
        if not recipients:
            raise DeliveryError("no recipient")

        msg = self._build_message(recipients, subject, body)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
                if self._starttls:
                    smtp.starttls(context=ssl.create_default_context())
                if self._username:
                    smtp.login(self._username, self._password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"SMTP send to {recipient!r} failed: {e}") from e

        logger.info("Mail sent to %s subject=%r", recipient, subject)


@dataclass(slots=True, frozen=True)
class SentMail:
    recipient: str
    subject: str
    body: str


class OfflineMailChannel:
    """
    Mail channel used when SMTP is not configured.

    Logs every message instead of sending it and keeps the last ones in memory,
    so a local run still shows what would have been delivered.
    """

    def __init__(self, keep_last: int = 100) -> None:
        self._lock = threading.Lock()
        self._keep_last = max(0, int(keep_last))
        self.sent: list[SentMail] = []

    def send_mail(self, recipient: str, subject: str, body: str) -> None:
        if not split_recipients(recipient):
            raise DeliveryError("no recipient")
        logger.info("Offline mail (SMTP not configured) to=%s subject=%r\n%s", recipient, subject, body)
        with self._lock:
            self.sent.append(SentMail(recipient=recipient, subject=subject, body=body))
            if len(self.sent) > self._keep_last:
                del self.sent[: len(self.sent) - self._keep_last]
