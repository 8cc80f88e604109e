"""
mail/sender.py -- Outbound email over SMTP (implicit TLS).

EmailSender is built from Settings at startup. When no mailbox login is
configured (only allowed with DEBUG=true, see core/config.py) messages are
written to the log instead of being sent, so local sign-ups can be completed
by reading the code from the console.

Transport failures are wrapped in MailDeliveryError; the caller decides whether
a failed notification is fatal to its operation.

Layer rule: mail/ imports only stdlib and core/.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import TYPE_CHECKING

from core.errors import MailDeliveryError

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("accounts.mail")

_SMTP_TIMEOUT_SECONDS = 30


class EmailSender:
    def __init__(self, settings: Settings) -> None:
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.email_user
        self.password = settings.email_pass
        self.from_name = settings.email_from_name
        self.enabled = settings.mail_enabled

    def send(self, to: str, subject: str, text: str) -> None:
        """Send a plain-text message. Raises MailDeliveryError on failure."""
        if not self.enabled:
            logger.info("Mail disabled; would send to %s: %s | %s", to, subject, text)
            return

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f'"{self.from_name}" <{self.username}>'
        msg["To"] = to
        msg.set_content(text)

        try:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=_SMTP_TIMEOUT_SECONDS) as server:
                server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise MailDeliveryError(f"Could not deliver email to {to}") from exc
        logger.info("Sent '%s' to %s", subject, to)

    def send_otp(self, to: str, code: str) -> None:
        self.send(to, "Verify your account", f"Your OTP code is: {code}")
