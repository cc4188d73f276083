"""Flask CLI commands for auth ledger maintenance."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import click
from flask import current_app
from flask.cli import with_appcontext

from trackauth.core.extensions import db
from trackauth.core.services import get_auth_service

LOGGER = logging.getLogger(__name__)


def _ensure_non_production() -> None:
    """Abort schema commands when running in production."""
    config = current_app.config
    if not (config.get("DEBUG") or config.get("TESTING")):
        raise click.UsageError("This command is restricted to non-production environments.")


@click.group("auth")
def auth_cli() -> None:
    """Authentication maintenance commands."""


@auth_cli.command("purge-tokens")
@click.option(
    "--now",
    "now",
    type=click.DateTime(formats=["%Y-%m-%dT%H:%M:%S%z", "%Y-%m-%dT%H:%M:%S"]),
    default=None,
    help="Reference instant (UTC when no offset is given). Defaults to the current time.",
)
@with_appcontext
def purge_tokens(now: datetime | None) -> None:
    """Delete expired/revoked refresh tokens and expired/used reset tokens."""
    if now is not None and now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    result = get_auth_service().purge_stale_tokens(now)
    click.echo(
        f"Purged refresh_tokens={result.refresh_tokens} reset_tokens={result.reset_tokens}"
    )


@auth_cli.command("create-tables")
@with_appcontext
def create_tables() -> None:
    """Create the auth tables in the configured database (development only)."""
    _ensure_non_production()
    db.create_all()
    LOGGER.info("auth.schema.created")
    click.echo("Auth tables created.")
