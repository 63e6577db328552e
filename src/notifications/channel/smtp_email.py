"""SMTP email adapter for production delivery."""

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

import structlog

from notifications.channel.email_port import EmailPort, delivered, undelivered
from notifications.settings import NotificationSettings

logger = structlog.get_logger(__name__)


class SMTPEmailAdapter(EmailPort):
    """Sends mail through an SMTP relay with STARTTLS and login."""

    def __init__(self, settings: NotificationSettings | None = None, smtp_factory=smtplib.SMTP):
        self.settings = settings or NotificationSettings.from_env()
        self._smtp_factory = smtp_factory

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> dict:
        msg = MIMEMultipart("alternative")
        msg["From"] = self.settings.email_from
        msg["To"] = to
        msg["Subject"] = subject
        message_id = make_msgid()
        msg["Message-ID"] = message_id
        msg.attach(MIMEText(body, "plain", "utf-8"))
        if html_body:
            msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with self._smtp_factory(
                self.settings.smtp_host, self.settings.smtp_port, timeout=self.settings.smtp_timeout
            ) as server:
                if self.settings.smtp_use_tls:
                    server.starttls()
                if self.settings.smtp_username:
                    server.login(self.settings.smtp_username, self.settings.smtp_password)
                server.sendmail(self.settings.email_from, [to], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("SMTP delivery failed", to=to, subject=subject, error=str(exc))
            return undelivered(str(exc))

        return delivered(message_id)
