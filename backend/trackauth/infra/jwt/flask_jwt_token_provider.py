# trackauth/infra/jwt/flask_jwt_token_provider.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from trackauth.services._shared.ports import TokenProvider

ACCESS_TOKEN_TYPE = "access"


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    Adapter for Flask-JWT-Extended.

    Tokens are signed with ``JWT_SECRET_KEY`` from the app config; ``sub`` is
    the user id and ``type`` is ``"access"``.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    def issue_access_token(self, user_id: str, *, expires_delta: timedelta) -> str:
        return cast(
            str,
            create_access_token(identity=str(user_id), expires_delta=expires_delta),
        )

    def decode(self, token: str) -> dict[str, Any]:
        return cast(dict[str, Any], decode_token(token))

    def verify(self, token: str) -> str | None:
        """
        Return the subject of a valid access token.

        Bad signatures, expired tokens, refresh-type tokens and undecodable
        input all yield ``None``.
        """
        try:
            claims = self.decode(token)
        except (PyJWTError, JWTExtendedException):
            return None
        if claims.get("type") != ACCESS_TOKEN_TYPE:
            return None
        subject = claims.get("sub")
        return str(subject) if subject else None
