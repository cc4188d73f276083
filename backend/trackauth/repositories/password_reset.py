"""Password reset ledger repository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, or_, select, update

from trackauth.models.password_reset import PasswordResetToken
from trackauth.repositories.base import BaseRepository


class PasswordResetRepository(BaseRepository[PasswordResetToken]):
    """Persistence-only access to password reset records."""

    model = PasswordResetToken

    def create(
        self, *, user_id: str, token_hash: str, expires_at: datetime
    ) -> PasswordResetToken:
        """Insert an unused reset record and flush it."""
        return self.add(
            PasswordResetToken(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
        )

    def list_unused_newest_first(self) -> list[PasswordResetToken]:
        """Return unused records ordered by ``created_at`` descending.

        :returns: Candidate records for a reset attempt.
        :rtype: list[PasswordResetToken]
        """
        stmt = (
            select(PasswordResetToken)
            .where(PasswordResetToken.used.is_(False))
            .order_by(PasswordResetToken.created_at.desc(), PasswordResetToken.id.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def mark_used(self, record_id: str) -> int:
        """Flip ``used`` on a still-unused record.

        :param record_id: Primary key of the record.
        :type record_id: str
        :returns: Rows affected; 0 means the record was already consumed.
        :rtype: int
        """
        stmt = (
            update(PasswordResetToken)
            .where(PasswordResetToken.id == record_id, PasswordResetToken.used.is_(False))
            .values(used=True)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def purge_stale(self, now: datetime) -> int:
        """Delete expired or used records and return how many were removed."""
        stmt = delete(PasswordResetToken).where(
            or_(PasswordResetToken.expires_at <= now, PasswordResetToken.used.is_(True))
        )
        return int(self.session.execute(stmt).rowcount or 0)
