"""
Email Provider Service
Adapter pattern for sending emails (dev logging vs SMTP)
"""
import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from ..config import config

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    """Email message structure"""
    to: str
    subject: str
    html_body: str
    text_body: Optional[str] = None
    from_address: Optional[str] = None


class EmailProvider(ABC):
    """
    Abstract email provider interface

    Implementations:
    - DevEmailProvider: Logs emails (development, tests)
    - SMTPEmailProvider: Sends via SMTP
    """

    @abstractmethod
    def send(self, message: EmailMessage) -> bool:
        """Send an email, returning True on success"""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is configured"""


class DevEmailProvider(EmailProvider):
    """Development email provider - logs emails instead of sending"""

    def __init__(self):
        self.sent = []

    def send(self, message: EmailMessage) -> bool:
        self.sent.append(message)
        logger.info(f"📧 EMAIL (DEV MODE - NOT SENT) to={message.to} subject={message.subject!r}")
        logger.debug(message.text_body or message.html_body)
        return True

    def is_available(self) -> bool:
        return True


class SMTPEmailProvider(EmailProvider):
    """SMTP email provider configured from SMTP_* settings"""

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        from_address: str,
        use_tls: bool = True,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_address = from_address
        self.use_tls = use_tls

    def send(self, message: EmailMessage) -> bool:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = message.from_address or self.from_address
        msg["To"] = message.to
        if message.text_body:
            msg.attach(MIMEText(message.text_body, "plain"))
        msg.attach(MIMEText(message.html_body, "html"))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                if self.use_tls:
                    server.starttls()
                if self.user:
                    server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {message.to}: {e}")
            return False

        logger.info(f"✓ Email sent to {message.to}: {message.subject}")
        return True

    def is_available(self) -> bool:
        return bool(self.host and self.port and self.from_address)


_email_provider: Optional[EmailProvider] = None


def get_email_provider() -> EmailProvider:
    """
    Get or create email provider singleton

    EMAIL_PROVIDER=smtp selects SMTP, anything else logs
    """
    global _email_provider

    if _email_provider is None:
        if config.EMAIL_PROVIDER == "smtp":
            _email_provider = SMTPEmailProvider(
                host=config.SMTP_HOST,
                port=config.SMTP_PORT,
                user=config.SMTP_USER,
                password=config.SMTP_PASSWORD,
                from_address=config.SMTP_FROM_ADDRESS,
                use_tls=config.SMTP_USE_TLS,
            )
            logger.info(f"✓ SMTP email provider configured ({config.SMTP_HOST}:{config.SMTP_PORT})")
        else:
            _email_provider = DevEmailProvider()
            logger.info("Using development email provider (emails are logged)")

    return _email_provider


def set_email_provider(provider: Optional[EmailProvider]) -> None:
    """Replace the provider singleton (tests, custom transports)"""
    global _email_provider
    _email_provider = provider
