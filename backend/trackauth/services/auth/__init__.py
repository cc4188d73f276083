from .dto import (
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
from .service import AuthService

__all__ = [
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
