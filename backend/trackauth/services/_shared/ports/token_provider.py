from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Protocol


class TokenProvider(Protocol):
    """Port for issuing and verifying signed access tokens."""

    def issue_access_token(self, user_id: str, *, expires_delta: timedelta) -> str: ...

    def verify(self, token: str) -> str | None:
        """Return the user id carried by a valid access token, else ``None``."""
        ...


class StubTokenProvider(TokenProvider):
    """Deterministic token provider used in unit tests.

    Tokens look like ``access.<user_id>.<seq>`` and expire relative to the
    wall clock, so ``freezegun`` can push them past their lifetime.
    """

    def __init__(self) -> None:
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}

    def issue_access_token(self, user_id: str, *, expires_delta: timedelta) -> str:
        self._seq += 1
        token = f"access.{user_id}.{self._seq}"
        self._issued[token] = {
            "sub": user_id,
            "type": "access",
            "exp": datetime.now(tz=UTC) + expires_delta,
        }
        return token

    def verify(self, token: str) -> str | None:
        payload = self._issued.get(token)
        if payload is None or payload["type"] != "access":
            return None
        if payload["exp"] <= datetime.now(tz=UTC):
            return None
        return str(payload["sub"])

    def decode(self, token: str) -> dict[str, Any]:
        return self._issued[token]
