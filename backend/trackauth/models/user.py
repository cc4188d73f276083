"""User model: the credential store of the auth core."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from trackauth.core.extensions import db

from .base import CreatedAtMixin, ReprMixin, UTCDateTime, UUIDPKMixin

if TYPE_CHECKING:
    from .password_reset import PasswordResetToken
    from .refresh_token import RefreshToken


class AuthProvider(str, enum.Enum):
    """Where the account was registered."""

    EMAIL = "email"
    GOOGLE = "google"


class User(UUIDPKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    Authentication identity and its credential.

    Fields
    ------
    email : str
        Login email. Stored normalized (lowercase, trimmed). Unique.
    username : str
        Public handle. Unique.
    password_hash : str | None
        One-way hash of the password. ``None`` for accounts created through an
        external identity provider. The plaintext is never stored.
    provider : AuthProvider
        Registration provider.
    email_verified : bool
        Whether the address has been confirmed.
    last_login : datetime | None
        Updated on every successful password login.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(254), nullable=False)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    provider: Mapped[AuthProvider] = mapped_column(
        Enum(AuthProvider, native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AuthProvider.EMAIL,
    )
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_login: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    refresh_tokens: Mapped[list[RefreshToken]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )
    password_resets: Mapped[list[PasswordResetToken]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("username", name="uq_users_username"),
        Index("ix_users_email", "email"),
    )

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :param key: Field name (``email``).
        :type key: str
        :param value: Email to normalize.
        :type value: str
        :returns: Normalized email (lowercased/trimmed).
        :rtype: str
        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = normalize_email(value)
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("username")
    def _normalize_username(self, key: str, value: str) -> str:
        """Trim the username and reject blank values."""
        if not isinstance(value, str):
            raise ValueError("Username is required.")
        v = value.strip()
        if not v:
            raise ValueError("Username is required.")
        return v


def normalize_email(value: str) -> str:
    """Lowercase and trim an address; the single normalization rule for lookups and storage."""
    return value.strip().lower()
