"""
Abstract Unit of Work contract for the auth service.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trackauth.repositories import (
        PasswordResetRepository,
        RefreshTokenRepository,
        UserRepository,
    )


class UnitOfWork(ABC):
    """
    Transactional boundary around one auth operation.

    Every repository handed out by a unit of work shares its session, so the
    user row and the ledger rows touched by one operation commit together or
    not at all.

    Attributes
    ----------
    users:
        Credential store.
    refresh_tokens:
        Refresh token ledger.
    password_resets:
        Password reset ledger.
    """

    users: UserRepository
    refresh_tokens: RefreshTokenRepository
    password_resets: PasswordResetRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...
    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...
    @abstractmethod
    def commit(self) -> None: ...
    @abstractmethod
    def rollback(self) -> None: ...
