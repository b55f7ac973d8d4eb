# vegbazar/core/email_client.py
"""
Email client utilities for the VegBazar backend.

Responsibilities:
  - Build an SMTP connection from the injected Settings.
  - Provide a single send_email(...) function for services to use.
  - Support both TLS (STARTTLS) and SSL connections.

Typical .env configuration (Gmail example with App Password):

    SMTP_HOST=smtp.gmail.com
    SMTP_PORT=465
    SMTP_USERNAME=info.vegbazar@gmail.com
    SMTP_PASSWORD=<app password>
    SMTP_FROM_EMAIL=info.vegbazar@gmail.com
    SMTP_FROM_NAME=VegBazar
    SMTP_USE_TLS=false
    SMTP_USE_SSL=true
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from vegbazar.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class EmailNotConfiguredError(RuntimeError):
    """Raised when SMTP settings are missing."""


# Everything send_email is expected to raise when delivery fails.
MAIL_ERRORS = (smtplib.SMTPException, OSError, EmailNotConfiguredError)


def _create_smtp_client(settings: Settings) -> smtplib.SMTP:
    """
    Create and return an SMTP client configured for TLS or SSL.

    Priority:
      - If SMTP_USE_SSL is True -> smtplib.SMTP_SSL (e.g., Gmail on 465).
      - Else -> smtplib.SMTP + optional STARTTLS if SMTP_USE_TLS is True.
    """
    if not settings.SMTP_HOST:
        raise EmailNotConfiguredError("SMTP_HOST is not configured. Please set it in .env.")

    if settings.SMTP_USE_SSL:
        server: smtplib.SMTP = smtplib.SMTP_SSL(
            settings.SMTP_HOST, settings.SMTP_PORT, timeout=30
        )
    else:
        server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30)
        if settings.SMTP_USE_TLS:
            server.starttls()

    return server


def build_message(
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None,
    settings: Settings,
) -> EmailMessage:
    msg = EmailMessage()
    from_email = settings.SMTP_FROM_EMAIL or settings.SMTP_USERNAME or ""
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{from_email}>" if from_email else settings.SMTP_FROM_NAME
    msg["To"] = to_email
    msg["Subject"] = subject

    # Always add a plain-text part
    msg.set_content(text_body)

    # Optional HTML alternative
    if html_body:
        msg.add_alternative(html_body, subtype="html")
    return msg


def send_email(
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None = None,
    settings: Settings | None = None,
) -> None:
    """
    Send an email to a single recipient.

    Raises
    ------
    EmailNotConfiguredError:
        If required SMTP configuration is missing.
    smtplib.SMTPException / OSError:
        If the underlying SMTP connection or send fails.
    """
    settings = settings or get_settings()
    if not (settings.SMTP_HOST and settings.SMTP_USERNAME and settings.SMTP_PASSWORD):
        raise EmailNotConfiguredError(
            "SMTP is not configured correctly. "
            "Please set SMTP_HOST, SMTP_USERNAME, and SMTP_PASSWORD in .env."
        )

    msg = build_message(to_email, subject, text_body, html_body, settings)

    server = _create_smtp_client(settings)
    try:
        server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD.get_secret_value())
        server.send_message(msg)
        logger.info("Sent email %r", subject)
    finally:
        try:
            server.quit()
        except smtplib.SMTPException:
            # Connection is being torn down anyway.
            pass
