"""Tests for the ``flask auth`` maintenance commands."""

from __future__ import annotations

from sqlalchemy import inspect
from trackauth.core.extensions import db as _db
from trackauth.models import RefreshToken

from tests.factories import utc_in
from tests.factories.password_reset import PasswordResetFactory
from tests.factories.refresh_token import RefreshTokenFactory


def test_purge_tokens_reports_counts(app, session):
    RefreshTokenFactory()
    RefreshTokenFactory(expires_at=utc_in(days=-1))
    PasswordResetFactory(used=True)

    result = app.test_cli_runner().invoke(args=["auth", "purge-tokens"])

    assert result.exit_code == 0, result.output
    assert "Purged refresh_tokens=1 reset_tokens=1" in result.output
    session.expire_all()
    assert session.query(RefreshToken).count() == 1


def test_purge_tokens_accepts_reference_instant(app, session):
    RefreshTokenFactory(expires_at=utc_in(days=2))

    result = app.test_cli_runner().invoke(
        args=["auth", "purge-tokens", "--now", utc_in(days=5).strftime("%Y-%m-%dT%H:%M:%S")]
    )

    assert result.exit_code == 0, result.output
    assert "refresh_tokens=1" in result.output


def test_create_tables(app):
    _db.drop_all()

    result = app.test_cli_runner().invoke(args=["auth", "create-tables"])

    assert result.exit_code == 0, result.output
    assert "Auth tables created." in result.output
    tables = set(inspect(_db.engine).get_table_names())
    assert {"users", "refresh_tokens", "password_reset_tokens"} <= tables
    _db.drop_all()


def test_create_tables_refused_in_production(app):
    app.config.update(DEBUG=False, TESTING=False)

    result = app.test_cli_runner().invoke(args=["auth", "create-tables"])

    assert result.exit_code != 0
    assert "non-production" in result.output
