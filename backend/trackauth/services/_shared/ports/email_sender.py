from __future__ import annotations

from typing import Protocol


class EmailSender(Protocol):
    """Port for the outbound mail collaborator.

    Implementations deliver a password reset message containing ``token`` to
    ``to`` and report success as a boolean. They must never raise for ordinary
    delivery failures.
    """

    def send_password_reset(self, *, to: str, token: str) -> bool: ...
