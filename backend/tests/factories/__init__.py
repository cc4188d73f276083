"""Factory Boy helpers wired to the project's SQLAlchemy session."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import factory
from trackauth.infra.security.werkzeug_hasher import WerkzeugSecretHasher

# Cheap digests for fixtures; verification parses the method from the digest.
TEST_HASHER = WerkzeugSecretHasher(method="pbkdf2:sha256:1000")


def utc_in(**delta) -> datetime:
    """Return ``now + timedelta(**delta)`` as an aware UTC datetime."""
    return datetime.now(UTC) + timedelta(**delta)


class SQLAlchemySession:
    """Store the session provided by the pytest fixture layer."""

    _session = None

    @classmethod
    def set(cls, session):
        """Register the SQLAlchemy session used to persist factory objects."""
        cls._session = session

    @classmethod
    def get(cls):
        """Return the registered SQLAlchemy session.

        Raises
        ------
        RuntimeError
            If factories are used in a test that does not request ``db``.
        """
        if cls._session is None:
            raise RuntimeError("Factories session not set. Did the test request the 'db' fixture?")
        return cls._session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Base class configuring Factory Boy for the per-test session.

    Objects are committed so that service-level rollbacks never discard
    fixture data.
    """

    class Meta:
        abstract = True
        sqlalchemy_session_factory = SQLAlchemySession.get
        sqlalchemy_session_persistence = "commit"
