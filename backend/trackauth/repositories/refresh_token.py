"""Refresh token ledger repository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, or_, select

from trackauth.models.refresh_token import RefreshToken
from trackauth.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only access to refresh records.

    Records carry hashes only; matching a presented secret against them is
    the service's job.
    """

    model = RefreshToken

    def create(self, *, user_id: str, token_hash: str, expires_at: datetime) -> RefreshToken:
        """Insert a new, non-revoked refresh record.

        :param user_id: Owner of the record.
        :type user_id: str
        :param token_hash: One-way hash of the opaque secret.
        :type token_hash: str
        :param expires_at: Absolute expiry instant (UTC).
        :type expires_at: datetime
        :returns: The flushed record.
        :rtype: RefreshToken
        """
        return self.add(
            RefreshToken(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
        )

    def list_unrevoked(self) -> list[RefreshToken]:
        """Return every non-revoked record, oldest first."""
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.revoked.is_(False))
            .order_by(RefreshToken.created_at.asc(), RefreshToken.id.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def list_live_for_user(self, user_id: str, now: datetime) -> list[RefreshToken]:
        """Return the user's non-revoked, unexpired records."""
        stmt = (
            select(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                RefreshToken.revoked.is_(False),
                RefreshToken.expires_at > now,
            )
            .order_by(RefreshToken.created_at.desc(), RefreshToken.id.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def delete_by_id(self, record_id: str) -> int:
        """Delete one record by id.

        :param record_id: Primary key of the record.
        :type record_id: str
        :returns: Rows affected; 0 means another transaction already removed it.
        :rtype: int
        """
        stmt = delete(RefreshToken).where(RefreshToken.id == record_id)
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_for_user(self, user_id: str) -> int:
        """Delete every refresh record owned by ``user_id``; return the count."""
        stmt = delete(RefreshToken).where(RefreshToken.user_id == user_id)
        return int(self.session.execute(stmt).rowcount or 0)

    def purge_stale(self, now: datetime) -> int:
        """Delete expired or revoked records and return how many were removed."""
        stmt = delete(RefreshToken).where(
            or_(RefreshToken.expires_at <= now, RefreshToken.revoked.is_(True))
        )
        return int(self.session.execute(stmt).rowcount or 0)
