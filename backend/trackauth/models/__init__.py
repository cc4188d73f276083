from trackauth.models.password_reset import PasswordResetToken
from trackauth.models.refresh_token import RefreshToken
from trackauth.models.user import AuthProvider, User, normalize_email

__all__ = [
    "AuthProvider",
    "PasswordResetToken",
    "RefreshToken",
    "User",
    "normalize_email",
]
