"""
SMTP email client.

``smtplib`` is blocking, so each send runs in a worker thread. Without
SMTP credentials the client logs the subject and recipient instead.
"""

import asyncio
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from autoglass.config import EmailConfig

logger = logging.getLogger(__name__)


class SmtpEmailClient:
    def __init__(self, config: EmailConfig, sender_name: str) -> None:
        self._config = config
        self._sender_name = sender_name

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    async def send(self, to: str, subject: str, html: str) -> bool:
        if not self.enabled:
            logger.info("[EMAIL DISABLED] Would send '%s' to %s", subject, to)
            return False
        try:
            await asyncio.to_thread(self._send_sync, to, subject, html)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email to %s failed: %s", to, exc)
            return False
        logger.info("Email '%s' sent to %s", subject, to)
        return True

    def _send_sync(self, to: str, subject: str, html: str) -> None:
        from_address = self._config.from_address or self._config.user
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = f"{self._sender_name} <{from_address}>"
        message["To"] = to
        message.attach(MIMEText(html, "html"))

        context = ssl.create_default_context()
        if self._config.port == 465:
            with smtplib.SMTP_SSL(self._config.host, self._config.port, context=context, timeout=30) as server:
                server.login(self._config.user, self._config.password)
                server.sendmail(from_address, [to], message.as_string())
        else:
            with smtplib.SMTP(self._config.host, self._config.port, timeout=30) as server:
                server.starttls(context=context)
                server.login(self._config.user, self._config.password)
                server.sendmail(from_address, [to], message.as_string())
