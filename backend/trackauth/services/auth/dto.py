# trackauth/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param username: Public handle (unique).
    :type username: str
    :param email: Email address; normalized before storage.
    :type email: str
    :param password: Raw password.
    :type password: str
    :param password_confirm: Must equal ``password``.
    :type password_confirm: str
    :param provider: Registration provider (``"email"`` or ``"google"``).
    :type provider: str
    """

    username: str
    email: str
    password: str
    password_confirm: str
    provider: str = "email"


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized by the service).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Opaque refresh secret returned by a previous call.
    :type refresh_token: str | None
    """

    refresh_token: str | None


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param user_id: Authenticated caller.
    :type user_id: str
    :param refresh_token: Secret of the one session to end; ``None`` ends all.
    :type refresh_token: str | None
    """

    user_id: str
    refresh_token: str | None = None


@dataclass(frozen=True, slots=True)
class ForgotPasswordIn:
    email: str


@dataclass(frozen=True, slots=True)
class ResetPasswordIn:
    token: str
    new_password: str


@dataclass(frozen=True, slots=True)
class ChangePasswordIn:
    """
    Input DTO for an authenticated password change.

    :param user_id: Authenticated caller.
    :type user_id: str
    :param current_password: Password the caller claims to have.
    :type current_password: str
    :param new_password: Replacement password.
    :type new_password: str
    """

    user_id: str
    current_password: str
    new_password: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """Public projection of a user; never carries the password hash."""

    id: str
    username: str
    email: str
    provider: str
    email_verified: bool
    created_at: datetime
    last_login: datetime | None = None


@dataclass(frozen=True, slots=True)
class AuthSessionOut:
    """
    Output DTO for register, login and refresh.

    :param user: Public user projection.
    :type user: UserPublicOut
    :param access_token: Signed, short-lived access token.
    :type access_token: str
    :param refresh_token: Opaque refresh secret (shown once, stored hashed).
    :type refresh_token: str
    """

    user: UserPublicOut
    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class MessageOut:
    message: str


@dataclass(frozen=True, slots=True)
class PurgeOut:
    """Counts of ledger rows removed by a maintenance purge."""

    refresh_tokens: int = 0
    reset_tokens: int = 0


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh record lifetime.
    :type refresh_expires: timedelta
    :param reset_expires: Password reset record lifetime.
    :type reset_expires: timedelta
    :param refresh_token_bytes: Random bytes behind each refresh secret.
    :type refresh_token_bytes: int
    :param reset_token_bytes: Random bytes behind each reset secret.
    :type reset_token_bytes: int
    """

    access_expires: timedelta = field(default_factory=lambda: timedelta(minutes=15))
    refresh_expires: timedelta = field(default_factory=lambda: timedelta(days=30))
    reset_expires: timedelta = field(default_factory=lambda: timedelta(hours=1))
    refresh_token_bytes: int = 64
    reset_token_bytes: int = 32
