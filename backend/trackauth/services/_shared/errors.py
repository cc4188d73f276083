"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic**: they carry a stable, client-safe
``message`` and never wrap HTTP objects. The translation to HTTP responses
(RFC 7807) is handled by ``trackauth/core/errors.py`` via
``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').

    Returns
    -------
    bool
        True if the IntegrityError message mentions the constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base type
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    :param message: Stable human-readable explanation, safe to show clients.
    :type message: str
    """

    default_message = "service error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


class ValidationError(ServiceError):
    """Input violates a business rule (e.g. password confirmation mismatch)."""

    default_message = "validation failed"


class ConflictError(ServiceError):
    """A uniqueness rule was violated (username or email already taken)."""

    default_message = "user already exists"


class InvalidCredentialsError(ServiceError):
    """Login failed. The message never reveals which part was wrong."""

    default_message = "invalid credentials"


class UnauthorizedError(ServiceError):
    """A presented token or identity could not be authenticated."""

    default_message = "unauthorized"


class BadRequestError(ServiceError):
    """The request is well-formed but cannot be honoured."""

    default_message = "bad request"


class InternalError(ServiceError):
    """Storage or infrastructure failure; details are logged, not returned."""

    default_message = "internal error"
