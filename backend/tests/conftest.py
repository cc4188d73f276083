"""Pytest fixtures building the app against a fresh in-memory database.

Every test gets its own application, schema and session so committed data
never leaks between cases. Service code commits through the Unit of Work, so a
per-test schema is used instead of a wrapping SAVEPOINT.
"""

from __future__ import annotations

import os

import pytest
from flask_jwt_extended import create_access_token
from trackauth.core.config import TestingConfig
from trackauth.core.extensions import db as _db  # Flask-SQLAlchemy instance
from trackauth.core.services import get_auth_service
from trackauth.factory import create_app  # application factory under test
from trackauth.infra.mail import OutboxEmailSender
from trackauth.infra.security.werkzeug_hasher import WerkzeugSecretHasher
from trackauth.services._shared.ports.token_provider import StubTokenProvider
from trackauth.services.auth.service import AuthService

TEST_HASH_METHOD = "pbkdf2:sha256:1000"


@pytest.fixture()
def app():
    """Create a Flask application configured for testing.

    Yields
    ------
    flask.Flask
        Application with :class:`TestingConfig` applied and an application
        context pushed for the duration of the test.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestingConfig)
    app.logger.setLevel("WARNING")
    with app.app_context():
        yield app


@pytest.fixture()
def db(app):
    """Create all tables before the test and drop them afterwards."""
    _db.create_all()
    yield _db
    _db.session.remove()
    _db.drop_all()


@pytest.fixture()
def session(db):
    """Return the Flask-scoped session shared with the Unit of Work."""
    return db.session


@pytest.fixture()
def client(app, db):
    """Flask test client bound to the testing application."""
    return app.test_client()


@pytest.fixture()
def hasher() -> WerkzeugSecretHasher:
    return WerkzeugSecretHasher(method=TEST_HASH_METHOD)


@pytest.fixture()
def outbox() -> OutboxEmailSender:
    return OutboxEmailSender()


@pytest.fixture()
def service(db, hasher, outbox) -> AuthService:
    """
    AuthService wired to the test database and in-process doubles.

    Access tokens come from :class:`StubTokenProvider`; reset emails land in
    ``outbox``.
    """
    return AuthService(
        token_provider=StubTokenProvider(),
        hasher=hasher,
        email_sender=outbox,
    )


@pytest.fixture()
def app_outbox(app) -> OutboxEmailSender:
    """The outbox used by the application-wide service (``MAIL_BACKEND=outbox``)."""
    return get_auth_service().mailer


@pytest.fixture()
def auth_headers(app):
    """Return a helper building ``Authorization`` headers for a user id."""

    def _make(user_id: str) -> dict[str, str]:
        token = create_access_token(identity=str(user_id))
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to the per-test session -------------------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper when the test uses the database."""
    from tests.factories import SQLAlchemySession

    if "db" in request.fixturenames:
        SQLAlchemySession.set(request.getfixturevalue("session"))
    yield
    SQLAlchemySession.set(None)
