"""
Outbound mail transports.

`SmtpMailSender` delivers multipart/alternative messages over SMTP with
STARTTLS or implicit TLS. `ConsoleMailSender` only logs what would be sent,
which is useful for dry runs and local setups without credentials.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate
import smtplib

from ..config import MailConfig
from ..errors import ConfigurationError, DeliveryError
from ..logging_utils import get_logger, log_event, truncate_text

logger = get_logger(__name__)


class MailSender(ABC):
    """Sends one rendered digest to one recipient."""

    name: str = "base"

    @abstractmethod
    def send(self, to: str, subject: str, html: str, text: str | None = None) -> None:
        """Send a message.

        Raises:
            DeliveryError: If the message could not be handed to the transport
        """
        raise NotImplementedError


def build_message(sender: str, to: str, subject: str, html: str, text: str | None) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = to
    msg["Date"] = formatdate(localtime=True)
    if text:
        msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))
    return msg


class SmtpMailSender(MailSender):
    name = "smtp"

    def __init__(self, cfg: MailConfig, smtp_factory=None, smtp_ssl_factory=None):
        if not cfg.username or not cfg.password:
            raise ConfigurationError("Email configuration missing")
        self.cfg = cfg
        self.from_email = cfg.from_email or cfg.username
        self._smtp = smtp_factory or smtplib.SMTP
        self._smtp_ssl = smtp_ssl_factory or smtplib.SMTP_SSL

    def _connect(self) -> smtplib.SMTP:
        if self.cfg.use_ssl:
            return self._smtp_ssl(self.cfg.host, self.cfg.port, timeout=self.cfg.timeout_seconds)
        return self._smtp(self.cfg.host, self.cfg.port, timeout=self.cfg.timeout_seconds)

    def send(self, to: str, subject: str, html: str, text: str | None = None) -> None:
        msg = build_message(formataddr((self.cfg.from_name, self.from_email)), to, subject, html, text)
        logger.info("Connecting to %s:%s", self.cfg.host, self.cfg.port)
        try:
            with self._connect() as server:
                if self.cfg.starttls and not self.cfg.use_ssl:
                    server.starttls()
                server.login(self.cfg.username, self.cfg.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"SMTP delivery to {to} failed: {exc}") from exc
        log_event(logger, f"Digest sent to {to}", event="mail_sent", to=to, subject=subject)


class ConsoleMailSender(MailSender):
    name = "console"

    def __init__(self, cfg: MailConfig | None = None, preview_chars: int = 500):
        self.cfg = cfg or MailConfig()
        self.preview_chars = preview_chars

    def send(self, to: str, subject: str, html: str, text: str | None = None) -> None:
        log_event(
            logger,
            f"Would send email to {to}: {subject}",
            event="mail_console",
            to=to,
            subject=subject,
            preview=truncate_text(text or html, self.preview_chars),
        )


def create_sender(cfg: MailConfig) -> MailSender:
    backend = cfg.backend.lower()
    if backend == "smtp":
        return SmtpMailSender(cfg)
    if backend == "console":
        return ConsoleMailSender(cfg)
    raise ConfigurationError(f"Unsupported mail backend: {cfg.backend}")
