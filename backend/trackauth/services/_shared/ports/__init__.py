"""
trackauth.services._shared.ports
================================

*Ports* (hexagonal interfaces) that the auth service depends on.

Modules
-------
- :mod:`secret_hasher`:
    :class:`~.SecretHasher`, one-way hashing and random token generation.
- :mod:`token_provider`:
    :class:`~.TokenProvider`, access-token issuing and verification, plus
    :class:`~.StubTokenProvider` for unit tests.
- :mod:`email_sender`:
    :class:`~.EmailSender`, delivery of password reset links.

Concrete adapters live under ``trackauth.infra``.
"""

from __future__ import annotations

from .email_sender import EmailSender
from .secret_hasher import SecretHasher
from .token_provider import StubTokenProvider, TokenProvider

__all__ = [
    "EmailSender",
    "SecretHasher",
    "StubTokenProvider",
    "TokenProvider",
]
