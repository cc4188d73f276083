"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    AuthSessionSchema,
    ChangePasswordSchema,
    ForgotPasswordSchema,
    LoginSchema,
    LogoutSchema,
    MessageSchema,
    RefreshSchema,
    RegisterSchema,
    ResetPasswordSchema,
    UserSchema,
)

__all__ = [
    "AuthSessionSchema",
    "ChangePasswordSchema",
    "ForgotPasswordSchema",
    "LoginSchema",
    "LogoutSchema",
    "MessageSchema",
    "RefreshSchema",
    "RegisterSchema",
    "ResetPasswordSchema",
    "UserSchema",
]
