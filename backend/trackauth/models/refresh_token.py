"""Refresh token ledger model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trackauth.core.extensions import db

from .base import CreatedAtMixin, ReprMixin, UTCDateTime, UUIDPKMixin

if TYPE_CHECKING:
    from .user import User


class RefreshToken(UUIDPKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    One redeemable refresh capability.

    Only the one-way hash of the opaque secret is stored. Rows are passive:
    validity (expiry, revocation, ownership) is decided by the auth service.
    """

    __tablename__ = "refresh_tokens"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    user: Mapped[User] = relationship(back_populates="refresh_tokens")

    __table_args__ = (
        Index("ix_refresh_tokens_user_id", "user_id"),
        Index("ix_refresh_tokens_revoked", "revoked"),
    )
