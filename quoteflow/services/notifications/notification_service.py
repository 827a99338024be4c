"""
Best-effort email notifications.

Two backends, picked by ``EMAIL_BACKEND``: ``console`` logs the rendered message
and ``smtp`` delivers it through aiosmtplib. ``notify()`` never raises; a failed
delivery is logged and reported as ``False``.
"""

import logging
from abc import ABC, abstractmethod
from email.mime.text import MIMEText

import aiosmtplib

from quoteflow.core.config import (
    EMAIL_BACKEND,
    EMAIL_FROM_ADDRESS,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USE_TLS,
    SMTP_USER,
)

logger = logging.getLogger(__name__)


NOTIFICATION_TEMPLATES = {
    "portal_expired": {
        "subject": "Customer portal expired for proposal {quote_number}",
        "body": (
            "The customer portal for proposal {quote_number} "
            "(customer: {customer_name}) has expired.\n"
            "Customer selections are incomplete. {job_line}"
        ),
    },
}


class EmailBackend(ABC):
    @abstractmethod
    async def send_email(self, to: str, subject: str, body: str, from_address: str) -> None:
        ...


class ConsoleEmailBackend(EmailBackend):
    """Logs emails instead of sending them."""

    async def send_email(self, to, subject, body, from_address):
        logger.info(
            "EMAIL (console) to=%s subject=%s\n%s",
            to,
            subject,
            body,
            extra={"from_address": from_address},
        )


class SMTPEmailBackend(EmailBackend):
    def __init__(self, host: str, port: int, username: str | None, password: str | None, use_tls: bool = True):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls

    async def send_email(self, to, subject, body, from_address):
        message = MIMEText(body, "plain")
        message["From"] = from_address
        message["To"] = to
        message["Subject"] = subject

        await aiosmtplib.send(
            message,
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            start_tls=self.use_tls,
        )


def _build_backend() -> EmailBackend:
    if EMAIL_BACKEND == "smtp":
        return SMTPEmailBackend(SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD, SMTP_USE_TLS)
    return ConsoleEmailBackend()


class NotificationService:
    def __init__(self, backend: EmailBackend | None = None, from_address: str = EMAIL_FROM_ADDRESS):
        self.backend = backend or _build_backend()
        self.from_address = from_address

    async def notify(self, recipient: str | None, template_key: str, template_data: dict) -> bool:
        if not recipient:
            logger.info("No recipient for notification", extra={"template": template_key})
            return False

        try:
            template = NOTIFICATION_TEMPLATES[template_key]
            subject = template["subject"].format(**template_data)
            body = template["body"].format(**template_data)
            await self.backend.send_email(recipient, subject, body, self.from_address)
        except Exception:
            logger.exception(
                "Notification failed",
                extra={"template": template_key, "recipient": recipient},
            )
            return False

        logger.info("Notification sent", extra={"template": template_key, "recipient": recipient})
        return True


notification_service = NotificationService()
