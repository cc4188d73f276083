"""Password reset ledger model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trackauth.core.extensions import db

from .base import CreatedAtMixin, ReprMixin, UTCDateTime, UUIDPKMixin

if TYPE_CHECKING:
    from .user import User


class PasswordResetToken(UUIDPKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """Single-use, short-lived capability to set a new password."""

    __tablename__ = "password_reset_tokens"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    user: Mapped[User] = relationship(back_populates="password_resets")

    __table_args__ = (
        Index("ix_password_reset_tokens_user_id", "user_id"),
        Index("ix_password_reset_tokens_used", "used"),
    )
