"""Outbound mail adapters and the backend selector used by the app factory."""

from __future__ import annotations

import atexit

from flask import Flask

from trackauth.services._shared.ports import EmailSender

from .senders import (
    BackgroundEmailSender,
    LoggingEmailSender,
    OutboxEmailSender,
    OutboxMessage,
    SMTPEmailSender,
)


def build_email_sender(app: Flask) -> EmailSender:
    """Return the sender selected by ``MAIL_BACKEND``.

    The ``smtp`` pool is shut down at process exit.

    :param app: Configured application.
    :type app: flask.Flask
    :returns: Sender instance for the configured backend.
    :rtype: EmailSender
    :raises RuntimeError: Unknown backend, or ``smtp`` without ``MAIL_SMTP_HOST``.
    """
    backend = str(app.config.get("MAIL_BACKEND", "log")).lower()
    if backend == "log":
        return LoggingEmailSender()
    if backend == "outbox":
        return OutboxEmailSender()
    if backend == "smtp":
        host = app.config.get("MAIL_SMTP_HOST")
        if not host:
            raise RuntimeError("MAIL_BACKEND=smtp requires MAIL_SMTP_HOST.")
        smtp = SMTPEmailSender(
            host=host,
            port=int(app.config.get("MAIL_SMTP_PORT", 587)),
            username=app.config.get("MAIL_SMTP_USER"),
            password=app.config.get("MAIL_SMTP_PASSWORD"),
            use_tls=bool(app.config.get("MAIL_USE_TLS", True)),
            from_addr=app.config["MAIL_FROM"],
            reset_url=app.config["PASSWORD_RESET_URL"],
        )
        sender = BackgroundEmailSender(smtp, max_workers=int(app.config.get("MAIL_WORKERS", 2)))
        # Drain queued deliveries before the interpreter exits.
        atexit.register(sender.shutdown)
        return sender
    raise RuntimeError(f"Unknown MAIL_BACKEND {backend!r}; expected log, smtp or outbox.")


__all__ = [
    "BackgroundEmailSender",
    "LoggingEmailSender",
    "OutboxEmailSender",
    "OutboxMessage",
    "SMTPEmailSender",
    "build_email_sender",
]
