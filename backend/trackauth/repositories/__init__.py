"""Repository package exposing persistence-layer access for the auth models."""

from __future__ import annotations

from trackauth.repositories.base import BaseRepository
from trackauth.repositories.password_reset import PasswordResetRepository
from trackauth.repositories.refresh_token import RefreshTokenRepository
from trackauth.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "RefreshTokenRepository",
    "PasswordResetRepository",
]
