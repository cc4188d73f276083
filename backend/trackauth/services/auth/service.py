# trackauth/services/auth/service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from trackauth.core.logger import redact_email
from trackauth.models.user import AuthProvider, User, normalize_email
from trackauth.services._shared.base import BaseService
from trackauth.services._shared.errors import (
    BadRequestError,
    ConflictError,
    InternalError,
    InvalidCredentialsError,
    UnauthorizedError,
    ValidationError,
    violates,
)
from trackauth.services._shared.ports.email_sender import EmailSender
from trackauth.services._shared.ports.secret_hasher import SecretHasher
from trackauth.services._shared.ports.token_provider import TokenProvider
from trackauth.services.auth.dto import (
    AuthSessionOut,
    AuthTokenConfig,
    ChangePasswordIn,
    ForgotPasswordIn,
    LoginIn,
    LogoutIn,
    MessageOut,
    PurgeOut,
    RefreshIn,
    RegisterIn,
    ResetPasswordIn,
    UserPublicOut,
)

logger = logging.getLogger(__name__)

MSG_PASSWORDS_DO_NOT_MATCH = "passwords do not match"
MSG_USER_EXISTS = "user already exists"
MSG_INVALID_CREDENTIALS = "invalid credentials"
MSG_MISSING_REFRESH = "missing refresh token"
MSG_INVALID_REFRESH = "invalid or expired refresh token"
MSG_USER_NOT_FOUND = "user not found"
MSG_INVALID_ACCESS = "invalid or expired access token"
MSG_EMAIL_REQUIRED = "email is required"
MSG_INVALID_RESET = "invalid or expired reset token"
MSG_CURRENT_PASSWORD_INCORRECT = "current password is incorrect"
MSG_PASSWORD_UNCHANGED = "new password is already the current password"

MSG_LOGGED_OUT = "logged out successfully"
MSG_RESET_SENT = "if an account with that email exists, a reset link has been sent"
MSG_PASSWORD_RESET = "password has been reset"
MSG_PASSWORD_CHANGED = "password changed successfully"


@dataclass(frozen=True, slots=True)
class _LedgerEntry:
    """Detached snapshot of a ledger row, safe to use after its UoW closed."""

    id: str
    user_id: str
    token_hash: str
    expires_at: datetime


def _to_public(user: User) -> UserPublicOut:
    return UserPublicOut(
        id=user.id,
        username=user.username,
        email=user.email,
        provider=AuthProvider(user.provider).value,
        email_verified=bool(user.email_verified),
        created_at=user.created_at,
        last_login=user.last_login,
    )


class AuthService(BaseService):
    """
    Authentication lifecycle service.

    Composes the credential store, both token ledgers, the secret hasher, the
    access-token issuer and the email collaborator into the register, login,
    refresh, logout and password flows.

    Every operation follows the same shape: read through a read-only unit of
    work, run slow hash comparisons with no write transaction open, then apply
    all writes of the operation inside one read-write unit of work.

    Ledger lookups are linear: each presented secret is compared against the
    stored hashes one by one (O(live records)) and the scan stops at the
    first match.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        hasher: SecretHasher,
        email_sender: EmailSender,
        token_cfg: AuthTokenConfig | None = None,
    ) -> None:
        """
        Initialize the service with its collaborators.

        :param token_provider: Adapter issuing and verifying access tokens.
        :param hasher: One-way hashing and random secret generation.
        :param email_sender: Delivers password reset links.
        :param token_cfg: Token lifetimes and secret sizes.
        """
        super().__init__()
        self.tokens = token_provider
        self.hasher = hasher
        self.mailer = email_sender
        self.cfg = token_cfg or AuthTokenConfig()

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> AuthSessionOut:
        """
        Create an account and open its first session.

        :param dto: Registration input.
        :returns: Public user plus a fresh access token and refresh secret.
        :raises ValidationError: Passwords differ or a field is malformed.
        :raises ConflictError: Username or email already taken.
        :raises InternalError: Any other storage failure.
        """
        if dto.password != dto.password_confirm:
            raise ValidationError(MSG_PASSWORDS_DO_NOT_MATCH)
        try:
            provider = AuthProvider(dto.provider)
        except ValueError as exc:
            raise ValidationError(f"unsupported provider: {dto.provider}") from exc

        password_hash = self.hasher.hash(dto.password)
        secret, secret_hash = self._new_secret(self.cfg.refresh_token_bytes)
        now = self.now_utc()

        try:
            with self.rw_uow() as uow:
                user = User(
                    username=dto.username,
                    email=dto.email,
                    password_hash=password_hash,
                    provider=provider,
                    email_verified=False,
                )
                uow.users.add(user)
                uow.refresh_tokens.create(
                    user_id=user.id,
                    token_hash=secret_hash,
                    expires_at=now + self.cfg.refresh_expires,
                )
                out = _to_public(user)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        except IntegrityError as exc:
            target = "email" if violates(exc, "uq_users_email") or violates(exc, "users.email") else "username"
            logger.info("auth.register.conflict", extra={"event": target})
            raise ConflictError(MSG_USER_EXISTS) from exc
        except SQLAlchemyError as exc:
            logger.error("auth.register.storage_failed", exc_info=True)
            raise InternalError() from exc

        logger.info("auth.register.succeeded", extra={"user_id": out.id})
        return self._session_out(out, secret)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> AuthSessionOut:
        """
        Authenticate credentials and open a new session.

        Unknown email, wrong password and accounts without a local password
        all fail with the same error.

        :param dto: Login input.
        :returns: Public user plus a fresh access token and refresh secret.
        :raises InvalidCredentialsError: If credentials are invalid.
        :raises InternalError: If the session could not be stored.
        """
        with self.ro_uow() as uow:
            user = uow.users.get_by_email(normalize_email(dto.email))
            user_id = user.id if user else None
            password_hash = user.password_hash if user else None

        if user_id is None or not password_hash:
            logger.info("auth.login.failed", extra={"event": "unknown_or_passwordless"})
            raise InvalidCredentialsError(MSG_INVALID_CREDENTIALS)
        if not self.hasher.compare(dto.password, password_hash):
            logger.info("auth.login.failed", extra={"user_id": user_id, "event": "bad_password"})
            raise InvalidCredentialsError(MSG_INVALID_CREDENTIALS)

        secret, secret_hash = self._new_secret(self.cfg.refresh_token_bytes)
        now = self.now_utc()
        try:
            with self.rw_uow() as uow:
                uow.users.touch_last_login(user_id, now)
                uow.refresh_tokens.create(
                    user_id=user_id,
                    token_hash=secret_hash,
                    expires_at=now + self.cfg.refresh_expires,
                )
                user = uow.users.get(user_id)
                if user is None:
                    raise InvalidCredentialsError(MSG_INVALID_CREDENTIALS)
                out = _to_public(user)
        except SQLAlchemyError as exc:
            logger.error("auth.login.storage_failed", extra={"user_id": user_id}, exc_info=True)
            raise InternalError() from exc

        logger.info("auth.login.succeeded", extra={"user_id": user_id})
        return self._session_out(out, secret)

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> AuthSessionOut:
        """
        Redeem a refresh secret and rotate it.

        The matched record is deleted and a replacement created in the same
        transaction. A delete that removes nothing means the secret was
        redeemed concurrently, so the call fails and each secret works once.

        :param dto: Refresh input.
        :returns: Public user plus a new access token and refresh secret.
        :raises UnauthorizedError: Missing, unknown, expired or replayed secret,
            or the owner no longer exists.
        :raises InternalError: On storage failure.
        """
        if not dto.refresh_token:
            raise UnauthorizedError(MSG_MISSING_REFRESH)

        now = self.now_utc()
        with self.ro_uow() as uow:
            candidates = [self._snapshot(r) for r in uow.refresh_tokens.list_unrevoked()]

        match = self._scan(dto.refresh_token, candidates)
        if match is None or match.expires_at <= now:
            logger.info("auth.refresh.rejected", extra={"event": "no_match" if match is None else "expired"})
            raise UnauthorizedError(MSG_INVALID_REFRESH)

        secret, secret_hash = self._new_secret(self.cfg.refresh_token_bytes)
        try:
            with self.rw_uow() as uow:
                user = uow.users.get(match.user_id)
                if user is None:
                    raise UnauthorizedError(MSG_USER_NOT_FOUND)
                if uow.refresh_tokens.delete_by_id(match.id) == 0:
                    logger.warning(
                        "auth.refresh.rejected", extra={"user_id": match.user_id, "event": "replayed"}
                    )
                    raise UnauthorizedError(MSG_INVALID_REFRESH)
                uow.refresh_tokens.create(
                    user_id=match.user_id,
                    token_hash=secret_hash,
                    expires_at=now + self.cfg.refresh_expires,
                )
                out = _to_public(user)
        except SQLAlchemyError as exc:
            logger.error("auth.refresh.storage_failed", extra={"user_id": match.user_id}, exc_info=True)
            raise InternalError() from exc

        logger.info("auth.refresh.rotated", extra={"user_id": match.user_id})
        return self._session_out(out, secret)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> MessageOut:
        """
        End one session of the caller, or all of them.

        :param dto: Logout input; ``refresh_token=None`` ends every session.
        :returns: Confirmation message.
        :raises BadRequestError: The secret matches no live session of the caller.
        :raises InternalError: On storage failure.
        """
        try:
            if dto.refresh_token:
                now = self.now_utc()
                with self.ro_uow() as uow:
                    candidates = [
                        self._snapshot(r)
                        for r in uow.refresh_tokens.list_live_for_user(dto.user_id, now)
                    ]
                match = self._scan(dto.refresh_token, candidates)
                if match is None:
                    raise BadRequestError(MSG_INVALID_REFRESH)
                with self.rw_uow() as uow:
                    if uow.refresh_tokens.delete_by_id(match.id) == 0:
                        raise BadRequestError(MSG_INVALID_REFRESH)
                removed = 1
            else:
                with self.rw_uow() as uow:
                    removed = uow.refresh_tokens.delete_for_user(dto.user_id)
        except SQLAlchemyError as exc:
            logger.error("auth.logout.storage_failed", extra={"user_id": dto.user_id}, exc_info=True)
            raise InternalError() from exc

        logger.info("auth.logout.succeeded", extra={"user_id": dto.user_id, "count": removed})
        return MessageOut(MSG_LOGGED_OUT)

    # ------------------------------------------------------------------ #
    # Password flows
    # ------------------------------------------------------------------ #

    def forgot_password(self, dto: ForgotPasswordIn) -> MessageOut:
        """
        Start a password reset.

        The response never reveals whether the address is registered. When it
        is, a reset record is stored and, after commit, the plaintext token is
        handed to the email collaborator. Delivery problems are logged only.

        :param dto: Forgot-password input.
        :returns: The same message for known and unknown addresses.
        :raises BadRequestError: Email missing or blank.
        :raises InternalError: The reset record could not be stored.
        """
        email = (dto.email or "").strip()
        if not email:
            raise BadRequestError(MSG_EMAIL_REQUIRED)

        with self.ro_uow() as uow:
            user = uow.users.get_by_email(email)
            user_id = user.id if user else None
            address = user.email if user else None

        if user_id is None or address is None:
            logger.info("auth.password.forgot.unknown %s", redact_email(normalize_email(email)))
            return MessageOut(MSG_RESET_SENT)

        secret, secret_hash = self._new_secret(self.cfg.reset_token_bytes)
        try:
            with self.rw_uow() as uow:
                uow.password_resets.create(
                    user_id=user_id,
                    token_hash=secret_hash,
                    expires_at=self.now_utc() + self.cfg.reset_expires,
                )
        except SQLAlchemyError as exc:
            logger.error("auth.password.forgot.storage_failed", extra={"user_id": user_id}, exc_info=True)
            raise InternalError() from exc

        self._deliver_reset(user_id=user_id, address=address, secret=secret)
        logger.info("auth.password.forgot.issued", extra={"user_id": user_id})
        return MessageOut(MSG_RESET_SENT)

    def reset_password(self, dto: ResetPasswordIn) -> MessageOut:
        """
        Consume a reset token and set a new password.

        Unused records are examined newest-first, expired ones skipped, and the
        first hash match wins. Setting the password, consuming the token and
        ending every session of the user commit together.

        :param dto: Reset input.
        :returns: Confirmation message.
        :raises BadRequestError: Unknown, expired, or already used token.
        :raises InternalError: On storage failure; nothing is applied.
        """
        if not dto.token:
            raise BadRequestError(MSG_INVALID_RESET)

        now = self.now_utc()
        with self.ro_uow() as uow:
            candidates = [
                self._snapshot(r)
                for r in uow.password_resets.list_unused_newest_first()
                if r.expires_at > now
            ]

        match = self._scan(dto.token, candidates)
        if match is None:
            logger.info("auth.password.reset.rejected")
            raise BadRequestError(MSG_INVALID_RESET)

        new_hash = self.hasher.hash(dto.new_password)
        try:
            with self.rw_uow() as uow:
                if uow.password_resets.mark_used(match.id) == 0:
                    raise BadRequestError(MSG_INVALID_RESET)
                if uow.users.set_password_hash(match.user_id, new_hash) == 0:
                    raise BadRequestError(MSG_INVALID_RESET)
                revoked = uow.refresh_tokens.delete_for_user(match.user_id)
        except SQLAlchemyError as exc:
            logger.error("auth.password.reset.storage_failed", extra={"user_id": match.user_id}, exc_info=True)
            raise InternalError() from exc

        logger.info("auth.password.reset.succeeded", extra={"user_id": match.user_id, "count": revoked})
        return MessageOut(MSG_PASSWORD_RESET)

    def change_password(self, dto: ChangePasswordIn) -> MessageOut:
        """
        Change the password of an authenticated user and end all sessions.

        :param dto: Change-password input.
        :returns: Confirmation message.
        :raises UnauthorizedError: User missing or has no local password.
        :raises BadRequestError: Wrong current password, or unchanged password.
        :raises InternalError: On storage failure.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(dto.user_id)
            password_hash = user.password_hash if user else None

        if not password_hash:
            raise UnauthorizedError(MSG_INVALID_CREDENTIALS)
        if not self.hasher.compare(dto.current_password, password_hash):
            logger.info("auth.password.change.rejected", extra={"user_id": dto.user_id})
            raise BadRequestError(MSG_CURRENT_PASSWORD_INCORRECT)
        if dto.current_password == dto.new_password:
            raise BadRequestError(MSG_PASSWORD_UNCHANGED)

        new_hash = self.hasher.hash(dto.new_password)
        try:
            with self.rw_uow() as uow:
                if uow.users.set_password_hash(dto.user_id, new_hash) == 0:
                    raise UnauthorizedError(MSG_INVALID_CREDENTIALS)
                revoked = uow.refresh_tokens.delete_for_user(dto.user_id)
        except SQLAlchemyError as exc:
            logger.error("auth.password.change.storage_failed", extra={"user_id": dto.user_id}, exc_info=True)
            raise InternalError() from exc

        logger.info("auth.password.change.succeeded", extra={"user_id": dto.user_id, "count": revoked})
        return MessageOut(MSG_PASSWORD_CHANGED)

    # ------------------------------------------------------------------ #
    # Access tokens and maintenance
    # ------------------------------------------------------------------ #

    def resolve_user_id(self, access_token: str | None) -> str:
        """
        Return the user id carried by a valid access token.

        Entry point for callers outside the HTTP layer (background jobs or other
        services). Flask views use :func:`trackauth.api.deps.require_auth`,
        which verifies the same signed token through flask-jwt-extended so
        its loader callbacks render the 401 problems.

        :raises UnauthorizedError: Missing, forged, expired or non-access token.
        """
        user_id = self.tokens.verify(access_token) if access_token else None
        if not user_id:
            raise UnauthorizedError(MSG_INVALID_ACCESS)
        return user_id

    def purge_stale_tokens(self, now: datetime | None = None) -> PurgeOut:
        """
        Delete ledger rows that can never be redeemed again.

        Removes expired or revoked refresh records and expired or used reset
        records in one transaction.

        :param now: Reference instant; defaults to the current UTC time.
        :returns: Number of rows removed from each ledger.
        :raises InternalError: On storage failure.
        """
        cutoff = now or self.now_utc()
        try:
            with self.rw_uow() as uow:
                refresh_count = uow.refresh_tokens.purge_stale(cutoff)
                reset_count = uow.password_resets.purge_stale(cutoff)
        except SQLAlchemyError as exc:
            logger.error("auth.tokens.purge_failed", exc_info=True)
            raise InternalError() from exc

        logger.info(
            "auth.tokens.purged",
            extra={"count": refresh_count + reset_count, "event": "purge"},
        )
        return PurgeOut(refresh_tokens=refresh_count, reset_tokens=reset_count)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _new_secret(self, nbytes: int) -> tuple[str, str]:
        secret = self.hasher.new_token(nbytes)
        return secret, self.hasher.hash(secret)

    @staticmethod
    def _snapshot(record) -> _LedgerEntry:
        return _LedgerEntry(
            id=record.id,
            user_id=record.user_id,
            token_hash=record.token_hash,
            expires_at=record.expires_at,
        )

    def _scan(self, secret: str, candidates: list[_LedgerEntry]) -> _LedgerEntry | None:
        """Return the first candidate whose hash matches ``secret``."""
        for entry in candidates:
            if self.hasher.compare(secret, entry.token_hash):
                return entry
        return None

    def _session_out(self, user: UserPublicOut, refresh_secret: str) -> AuthSessionOut:
        access = self.tokens.issue_access_token(user.id, expires_delta=self.cfg.access_expires)
        return AuthSessionOut(user=user, access_token=access, refresh_token=refresh_secret)

    def _deliver_reset(self, *, user_id: str, address: str, secret: str) -> None:
        try:
            delivered = self.mailer.send_password_reset(to=address, token=secret)
        except Exception:  # noqa: BLE001 - delivery never undoes the stored token
            logger.warning("auth.password.forgot.delivery_failed", extra={"user_id": user_id}, exc_info=True)
            return
        if not delivered:
            logger.warning("auth.password.forgot.delivery_failed", extra={"user_id": user_id})
