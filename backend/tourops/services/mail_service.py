# Overview: Outbound notification e-mail over SMTP, sent off the request thread.

"""
Mail Dispatcher

Sending never raises: every failure is logged and reported in the result
dict. dispatch_notification_email() snapshots the SMTP settings from the app
config (the worker thread has no app context) and hands the send to a small
thread pool, so a slow SMTP server never stalls a mutation response.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

from flask import current_app

logger = logging.getLogger(__name__)

SENDER_DISPLAY_NAME = "Tour Operations Notifications"

_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="mail")


@dataclass(frozen=True)
class MailSettings:
    host: str
    port: int = 465
    secure: bool = True
    username: Optional[str] = None
    password: Optional[str] = None
    sender: Optional[str] = None
    recipient: Optional[str] = None
    timeout: float = 5.0

    @classmethod
    def from_config(cls, config) -> Optional["MailSettings"]:
        """None when mail is disabled or SMTP_HOST is unset."""
        if not config.get("NOTIFICATION_EMAILS_ENABLED", True):
            return None
        host = config.get("SMTP_HOST")
        if not host:
            return None
        username = config.get("SMTP_USER")
        return cls(
            host=host,
            port=int(config.get("SMTP_PORT") or 465),
            secure=bool(config.get("SMTP_SECURE", True)),
            username=username,
            password=config.get("SMTP_PASSWORD"),
            sender=config.get("MAIL_FROM") or username,
            recipient=config.get("MAIL_TO") or username,
            timeout=float(config.get("MAIL_TIMEOUT_SECONDS") or 5.0),
        )


def _build_message(subject: str, text: str, settings: MailSettings) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = f'"{SENDER_DISPLAY_NAME}" <{settings.sender}>'
    msg["To"] = settings.recipient
    msg.set_content(text)
    return msg


def send_notification_email(subject: str, text: str, settings: MailSettings) -> dict:
    """
    Send one plain-text notification e-mail synchronously.

    Returns {"success": bool, "error": str | None}.
    """
    if not settings.sender or not settings.recipient:
        logger.warning("Notification email skipped: no sender/recipient configured")
        return {"success": False, "error": "Mail sender or recipient not configured"}

    try:
        msg = _build_message(subject, text, settings)
        if settings.secure:
            context = ssl.create_default_context()
            server = smtplib.SMTP_SSL(settings.host, settings.port, context=context, timeout=settings.timeout)
        else:
            server = smtplib.SMTP(settings.host, settings.port, timeout=settings.timeout)
        with server:
            if not settings.secure:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls(context=ssl.create_default_context())
                    server.ehlo()
            if settings.username and settings.password:
                server.login(settings.username, settings.password)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Email sending failed via %s:%s: %s", settings.host, settings.port, exc)
        return {"success": False, "error": str(exc)}
    except Exception as exc:
        logger.exception("Unexpected error sending notification email: %s", subject)
        return {"success": False, "error": str(exc)}

    logger.info("Notification email sent: %s", subject)
    return {"success": True, "error": None}


def dispatch_notification_email(subject: str, text: str) -> Optional[Future]:
    """
    Queue a notification e-mail in the background.

    Returns the Future, or None when mail is disabled/unconfigured or the
    pool refused the job. Never raises.
    """
    settings = MailSettings.from_config(current_app.config)
    if settings is None:
        return None
    try:
        return _executor.submit(send_notification_email, subject, text, settings)
    except RuntimeError:
        logger.exception("Failed to queue notification email")
        return None
