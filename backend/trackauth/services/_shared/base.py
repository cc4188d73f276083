# trackauth/services/_shared/base.py
from __future__ import annotations

from datetime import UTC, datetime

from trackauth.core import errors as api_errors
from trackauth.services._shared.errors import (
    BadRequestError,
    ConflictError,
    InternalError,
    InvalidCredentialsError,
    ServiceError,
    UnauthorizedError,
    ValidationError,
)
from trackauth.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Centralize error translation.
    * Keep services thin, orchestration-only, no web/ORM leakage.

    Notes
    -----
    - Services must never touch the global session; always use a Unit of Work.
    """

    DEFAULT_READ_ISOLATION = "READ COMMITTED"

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(
        self, *, isolation: str | None = None, enforce_db_readonly: bool = True
    ) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param isolation: Transaction isolation level (e.g. "READ COMMITTED").
        :type isolation: str | None
        :param enforce_db_readonly: Apply `SET TRANSACTION READ ONLY` when supported.
        :type enforce_db_readonly: bool
        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(
            isolation_level=isolation or self.DEFAULT_READ_ISOLATION,
            enforce_db_readonly=enforce_db_readonly,
        )

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, ValidationError):
            return api_errors.BadRequest(exc.message, code="validation_error")

        if isinstance(exc, ConflictError):
            return api_errors.Conflict(exc.message)

        if isinstance(exc, InvalidCredentialsError):
            return api_errors.Unauthorized(exc.message, code="invalid_credentials")

        if isinstance(exc, UnauthorizedError):
            return api_errors.Unauthorized(exc.message)

        if isinstance(exc, BadRequestError):
            return api_errors.BadRequest(exc.message)

        if isinstance(exc, InternalError):
            return api_errors.InternalServerError()

        # Any other ServiceError subclass -> 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.BadRequest(exc.message)

        return exc
