from __future__ import annotations

from functools import lru_cache

from specyf.core.config import settings
from specyf.mail.base import EmailSender


def create_email_sender(backend: str | None = None) -> EmailSender:
    selected_backend = (backend or settings.email_backend).strip().lower()
    if selected_backend == "smtp":
        from specyf.mail.smtp import SMTPEmailSender

        return SMTPEmailSender(
            settings.smtp_host,
            settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout_seconds,
        )
    if selected_backend == "console":
        from specyf.mail.console import ConsoleEmailSender

        return ConsoleEmailSender()
    if selected_backend == "memory":
        from specyf.mail.memory import MemoryEmailSender

        return MemoryEmailSender()
    raise ValueError(f"unsupported email backend: {selected_backend}")


@lru_cache(maxsize=1)
def get_email_sender() -> EmailSender:
    return create_email_sender()
