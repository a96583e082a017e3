from __future__ import annotations

import smtplib
from email.message import EmailMessage
from typing import Mapping


def send_mail(config: Mapping, to: str, subject: str, body: str) -> None:
    """Send a plain-text e-mail through the configured SMTP relay.

    Raises RuntimeError when SMTP is not configured; smtplib errors propagate.
    """
    host = config.get("SMTP_HOST")
    if not host:
        raise RuntimeError("SMTP is not configured")
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = config.get("MAIL_FROM")
    msg["To"] = to
    msg.set_content(body)

    with smtplib.SMTP(host, int(config.get("SMTP_PORT") or 587), timeout=float(config.get("UPSTREAM_TIMEOUT") or 20)) as server:
        if config.get("SMTP_USE_TLS"):
            server.starttls()
        user, password = config.get("SMTP_USER"), config.get("SMTP_PASSWORD")
        if user and password:
            server.login(user, password)
        server.send_message(msg)
