"""Email alert provider and SMTP transport."""

import asyncio
import logging
import re
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import Optional

from pulseflow.adapters.notifications import email_templates
from pulseflow.adapters.notifications.base import BaseAlertProvider
from pulseflow.core.entities import AlertChannel, AlertDeliveryResult, AlertOptions
from pulseflow.core.errors import ErrorKind, PulseflowError, Result
from pulseflow.core.interfaces import EmailTransport
from pulseflow.core.retry import DEFAULT_MAX_RETRIES

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DEFAULT_EMAIL_FROM = "PulseFlow <alerts@pulseflow.dev>"


class SmtpEmailTransport(EmailTransport):
    """Send multipart text+HTML mail over SMTP."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        sender: str = DEFAULT_EMAIL_FROM,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.timeout = timeout

    def build_message(self, to: str, subject: str, html: str, text: str) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = to
        message["Message-ID"] = make_msgid(domain="pulseflow.dev")
        message.attach(MIMEText(text, "plain", "utf-8"))
        message.attach(MIMEText(html, "html", "utf-8"))
        return message

    async def send(self, to: str, subject: str, html: str, text: str) -> str:
        message = self.build_message(to, subject, html, text)
        # smtplib blocks; keep the event loop free for other deliveries.
        await asyncio.to_thread(self._send_sync, message)
        return message["Message-ID"]

    def _send_sync(self, message: MIMEMultipart) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password)
            server.send_message(message)


class EmailAlertProvider(BaseAlertProvider):
    """Deliver change notifications by email."""

    channel = AlertChannel.EMAIL

    def __init__(
        self,
        transport: Optional[EmailTransport] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        super().__init__(max_retries=max_retries)
        self.transport = transport

    def is_available(self) -> bool:
        return self.transport is not None

    def validate_destination(self, destination: str) -> bool:
        return bool(EMAIL_REGEX.match(destination))

    async def deliver(self, options: AlertOptions) -> Result[AlertDeliveryResult]:
        if self.transport is None:
            return Result.fail(PulseflowError(
                "Email transport is not configured (set smtp.host or SMTP_HOST)",
                ErrorKind.PROVIDER_UNAVAILABLE,
            ))

        subject = email_templates.build_subject(options.signal.name, options.change)
        html = email_templates.render_html(options.signal, options.change)
        text = email_templates.render_text(options.signal, options.change)

        message_id = await self.transport.send(options.destination, subject, html, text)
        logger.info("Email alert sent to %s (%s)", options.destination, message_id)

        return Result.ok(self._delivered(options.destination))
