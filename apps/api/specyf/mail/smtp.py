from __future__ import annotations

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from specyf.core.config import settings
from specyf.mail.base import EmailDeliveryError, EmailSender, OutgoingEmail


class SMTPEmailSender(EmailSender):
    def __init__(
        self,
        host: str,
        port: int,
        *,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: int = 10,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _build(self, message: OutgoingEmail) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((settings.email_from_name, settings.email_from_address))
        msg["To"] = formataddr((message.to_name or "", message.to_email))
        msg["Subject"] = message.subject
        msg.attach(MIMEText(message.html, "html"))
        return msg

    def send(self, message: OutgoingEmail) -> None:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(self._build(message))
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError(str(exc)) from exc
