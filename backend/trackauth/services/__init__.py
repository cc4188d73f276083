"""Service layer public API.

Re-exports
----------
- Base primitives (from ``trackauth.services._shared.base``)
    * :class:`BaseService`

- Service errors (from ``trackauth.services._shared.errors``)
    * :class:`ServiceError` and its subclasses

- Auth service (from ``trackauth.services.auth``)
    * :class:`AuthService`
    * DTOs for every auth operation
"""

from __future__ import annotations

from trackauth.services._shared.base import BaseService
from trackauth.services._shared.errors import (
    BadRequestError,
    ConflictError,
    InternalError,
    InvalidCredentialsError,
    ServiceError,
    UnauthorizedError,
    ValidationError,
)
from trackauth.services.auth import (
    AuthService,
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

__all__ = [
    # Base
    "BaseService",
    # Errors
    "BadRequestError",
    "ConflictError",
    "InternalError",
    "InvalidCredentialsError",
    "ServiceError",
    "UnauthorizedError",
    "ValidationError",
    # Auth
    "AuthService",
    "AuthSessionOut",
    "AuthTokenConfig",
    "ChangePasswordIn",
    "ForgotPasswordIn",
    "LoginIn",
    "LogoutIn",
    "MessageOut",
    "PurgeOut",
    "RefreshIn",
    "RegisterIn",
    "ResetPasswordIn",
    "UserPublicOut",
]
