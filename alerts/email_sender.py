from __future__ import annotations

import logging
from aiosmtplib import SMTP, SMTPException
from email.message import EmailMessage

from settings.config import settings

logger = logging.getLogger(__name__)


async def send_markdown_email(to_email: str, subject: str, markdown_body: str) -> bool:
    if not settings.SMTP_HOST or not settings.SMTP_PORT or not settings.ALERTS_FROM_EMAIL:
        return False
    msg = EmailMessage()
    msg["From"] = settings.ALERTS_FROM_EMAIL
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(markdown_body)
    try:
        async with SMTP(hostname=settings.SMTP_HOST, port=settings.SMTP_PORT, start_tls=False) as smtp:
            if settings.SMTP_USER and settings.SMTP_PASS:
                await smtp.starttls()
                await smtp.login(settings.SMTP_USER, settings.SMTP_PASS)
            await smtp.send_message(msg)
        return True
    except (SMTPException, OSError) as e:
        logger.warning(f"Failed to send alert e-mail to {to_email}: {e}")
        return False
