"""User repository for persistence of identities and credentials."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import select, update

from trackauth.models.user import User, normalize_email
from trackauth.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It stores hashes handed to it by the service; it NEVER hashes or compares
    secrets and NEVER issues tokens.
    """

    model = User

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == normalize_email(email))
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    # ---------------------------- Credential ops ----------------------------

    def set_password_hash(self, user_id: str, password_hash: str) -> int:
        """Replace the stored password hash.

        :param user_id: Identifier of the user.
        :type user_id: str
        :param password_hash: Already-hashed credential.
        :type password_hash: str
        :returns: Number of rows updated (0 when the user is gone).
        :rtype: int
        """
        stmt = update(User).where(User.id == user_id).values(password_hash=password_hash)
        return int(self.session.execute(stmt).rowcount or 0)

    def touch_last_login(self, user_id: str, when: datetime) -> int:
        """Stamp ``last_login`` for a user and return the affected row count."""
        stmt = update(User).where(User.id == user_id).values(last_login=when)
        return int(self.session.execute(stmt).rowcount or 0)
