"""
Mailer Module

Sends outreach emails over SMTP (implicit SSL, or STARTTLS when
SMTP_USE_TLS is set).
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from typing import Optional

from applyo.config import settings
from applyo.exceptions import ConfigurationError, MailerError
from applyo.utils import is_valid_email

logger = logging.getLogger(__name__)


class Mailer:
    """Sends plain-text emails through the configured SMTP server."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        use_tls: Optional[bool] = None,
    ):
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.username = username or settings.smtp_username
        self.password = password or settings.smtp_password
        self.sender = sender or settings.smtp_sender or self.username
        self.use_tls = settings.smtp_use_tls if use_tls is None else use_tls
        self.timeout = settings.http_timeout

    def _check_config(self):
        if not self.host or not self.sender:
            raise ConfigurationError("SMTP_HOST and SMTP_SENDER must be configured to send email")

    def build_message(self, to: str, subject: str, body: str, reply_to: Optional[str] = None) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message["Date"] = formatdate(localtime=True)
        message["Message-ID"] = make_msgid(domain=self.sender.split("@")[-1])
        if reply_to:
            message["Reply-To"] = reply_to
        message.set_content(body)
        return message

    def send(self, to: str, subject: str, body: str, reply_to: Optional[str] = None) -> str:
        """
        Send one email.

        Args:
            to: Recipient address
            subject: Subject line
            body: Plain-text body
            reply_to: Optional Reply-To address

        Returns:
            Message-ID of the sent message

        Raises:
            ValueError: If the recipient address is invalid
            ConfigurationError: If SMTP is not configured
            MailerError: If the SMTP exchange fails
        """
        to = (to or "").strip()
        if not is_valid_email(to):
            raise ValueError(f"Invalid recipient address: {to!r}")
        self._check_config()

        message = self.build_message(to, subject, body, reply_to)
        context = ssl.create_default_context()

        try:
            if self.use_tls:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                    smtp.starttls(context=context)
                    if self.username:
                        smtp.login(self.username, self.password or "")
                    smtp.send_message(message)
            else:
                with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout) as smtp:
                    if self.username:
                        smtp.login(self.username, self.password or "")
                    smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to}: {e}", exc_info=True)
            raise MailerError(f"Failed to send email: {e}") from e

        logger.info(f"Sent email to {to} ({message['Message-ID']})")
        return message["Message-ID"]
