"""Email collaborator adapters for password reset delivery.

Backends
--------
``log``
    Development default. Records that a message would be sent; the token is
    never written to the log.
``smtp``
    Real delivery through :mod:`smtplib`, wrapped in
    :class:`BackgroundEmailSender` so request threads do not wait on the
    mail server.
``outbox``
    In-memory capture used by the test suite.
"""

from __future__ import annotations

import logging
import smtplib
import ssl
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from email.message import EmailMessage

from trackauth.core.logger import redact_email
from trackauth.services._shared.ports import EmailSender

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Reset your password"


def render_reset_body(link: str) -> str:
    return (
        "We received a request to reset your password.\n\n"
        f"Open this link to choose a new one:\n{link}\n\n"
        "The link expires in one hour. If you did not ask for a reset, ignore this email.\n"
    )


class LoggingEmailSender(EmailSender):
    """Pretend to deliver by logging a redacted notice."""

    def send_password_reset(self, *, to: str, token: str) -> bool:
        logger.info("mail.password_reset.logged %s", redact_email(to), extra={"event": "mail.log"})
        return True


@dataclass(frozen=True, slots=True)
class OutboxMessage:
    to: str
    token: str


class OutboxEmailSender(EmailSender):
    """Collect messages in memory; thread-safe so background callers are fine."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._messages: list[OutboxMessage] = []

    def send_password_reset(self, *, to: str, token: str) -> bool:
        with self._lock:
            self._messages.append(OutboxMessage(to=to, token=token))
        return True

    @property
    def messages(self) -> list[OutboxMessage]:
        with self._lock:
            return list(self._messages)

    def last_token_for(self, to: str) -> str | None:
        """Return the most recent token sent to ``to``, if any."""
        for message in reversed(self.messages):
            if message.to == to:
                return message.token
        return None

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()


class SMTPEmailSender(EmailSender):
    """
    Deliver reset links over SMTP.

    :param host: SMTP server host.
    :param port: SMTP server port.
    :param username: Optional login user.
    :param password: Optional login password.
    :param use_tls: ``True`` for STARTTLS on a plain connection, ``False`` for
        implicit TLS (``SMTP_SSL``).
    :param from_addr: Envelope and header sender.
    :param reset_url: Link template containing ``{token}``.
    :param timeout: Socket timeout in seconds.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        from_addr: str,
        reset_url: str,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_addr = from_addr
        self.reset_url = reset_url
        self.timeout = timeout

    def build_message(self, *, to: str, token: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = RESET_SUBJECT
        msg["From"] = self.from_addr
        msg["To"] = to
        msg.set_content(render_reset_body(self.reset_url.format(token=token)))
        return msg

    def send_password_reset(self, *, to: str, token: str) -> bool:
        msg = self.build_message(to=to, token=token)
        context = ssl.create_default_context()
        try:
            if self.use_tls:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                    server.starttls(context=context)
                    self._login(server)
                    server.send_message(msg)
            else:
                with smtplib.SMTP_SSL(
                    self.host, self.port, context=context, timeout=self.timeout
                ) as server:
                    self._login(server)
                    server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(
                "mail.password_reset.failed %s (%s)",
                redact_email(to),
                type(exc).__name__,
                extra={"event": "mail.smtp"},
            )
            return False

        logger.info("mail.password_reset.sent %s", redact_email(to), extra={"event": "mail.smtp"})
        return True

    def _login(self, server: smtplib.SMTP) -> None:
        if self.username and self.password:
            server.login(self.username, self.password)


class BackgroundEmailSender(EmailSender):
    """
    Hand deliveries to a small thread pool and report acceptance.

    The return value means the message was queued; failures of the wrapped
    sender are logged by the worker.
    """

    def __init__(self, inner: EmailSender, *, max_workers: int = 2) -> None:
        self.inner = inner
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mail")

    def send_password_reset(self, *, to: str, token: str) -> bool:
        future = self._pool.submit(self.inner.send_password_reset, to=to, token=token)
        future.add_done_callback(self._report)
        return True

    @staticmethod
    def _report(future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("mail.background.failed", exc_info=exc)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)
