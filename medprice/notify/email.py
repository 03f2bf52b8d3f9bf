"""
Admin alert mail over SMTP.
The blocking smtplib call runs in a worker thread so request handlers stay async.
"""

import asyncio
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

import structlog

from medprice.config import settings
from medprice.observability.metrics import admin_notifications_total

logger = structlog.get_logger(__name__)


class MailError(Exception):
    """SMTP delivery failed."""


class AdminMailer:
    """Sends HTML mail to the configured admin alert address."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        recipient: Optional[str] = None,
    ):
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.user = user or settings.SMTP_USER
        self.password = password or settings.SMTP_PASSWORD
        self.recipient = recipient or settings.ADMIN_ALERT_EMAIL

    @property
    def configured(self) -> bool:
        return bool(self.host and self.recipient)

    def _build_message(self, subject: str, html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = formataddr((settings.MAIL_SENDER_NAME, self.user or self.recipient))
        msg["To"] = self.recipient
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")
        return msg

    def _send_blocking(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=settings.SMTP_TIMEOUT_SECONDS) as smtp:
            smtp.starttls()
            if self.user and self.password:
                smtp.login(self.user, self.password)
            smtp.send_message(msg)

    async def send_admin_mail(self, subject: str, html: str, kind: str = "generic") -> bool:
        """Returns False when SMTP is not configured; raises MailError on delivery failure."""
        if not self.configured:
            logger.warning("admin_mail_skipped", reason="smtp_not_configured", subject=subject)
            admin_notifications_total.labels(kind=kind, outcome="skipped").inc()
            return False

        msg = self._build_message(subject, html)
        try:
            await asyncio.to_thread(self._send_blocking, msg)
        except (smtplib.SMTPException, OSError) as e:
            admin_notifications_total.labels(kind=kind, outcome="failed").inc()
            logger.error("admin_mail_failed", subject=subject, error=str(e))
            raise MailError(str(e)) from e

        admin_notifications_total.labels(kind=kind, outcome="sent").inc()
        logger.info("admin_mail_sent", subject=subject, recipient=self.recipient)
        return True
