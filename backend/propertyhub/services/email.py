"""Outbound email over SMTP.

When SMTP is disabled (development, tests) messages are logged instead of sent.
"""

import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Optional

from starlette.concurrency import run_in_threadpool

from propertyhub.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class Attachment:
    filename: str
    content: bytes
    mime_type: str = "application/pdf"


@dataclass
class OutgoingEmail:
    to: str
    subject: str
    body: str
    attachments: list[Attachment] = field(default_factory=list)


class EmailService:
    """Sends transactional emails (receipts, invoices)."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def build_message(self, email: OutgoingEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.settings.email_from
        msg["To"] = email.to
        msg["Subject"] = email.subject
        msg.set_content(email.body)
        for attachment in email.attachments:
            maintype, subtype = attachment.mime_type.split("/", 1)
            msg.add_attachment(
                attachment.content,
                maintype=maintype,
                subtype=subtype,
                filename=attachment.filename,
            )
        return msg

    def _send_sync(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=30) as smtp:
            if self.settings.smtp_use_tls:
                smtp.starttls()
            if self.settings.smtp_user and self.settings.smtp_password:
                smtp.login(self.settings.smtp_user, self.settings.smtp_password)
            smtp.send_message(msg)

    async def send(self, email: OutgoingEmail) -> bool:
        """Send an email. Returns False (and logs) when delivery fails."""
        if not self.settings.smtp_enabled:
            logger.info(f"[EMAIL] SMTP disabled; would send '{email.subject}' to {email.to}")
            return False

        msg = self.build_message(email)
        try:
            await run_in_threadpool(self._send_sync, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"[EMAIL] Failed to send '{email.subject}' to {email.to}: {e}")
            return False

        logger.info(f"[EMAIL] Sent '{email.subject}' to {email.to}")
        return True


def get_email_service() -> EmailService:
    return EmailService()
