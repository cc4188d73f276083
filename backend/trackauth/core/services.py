"""Process-wide wiring of the auth orchestrator and its collaborators."""

from __future__ import annotations

from datetime import timedelta
from typing import cast

from flask import Flask, current_app

from trackauth.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from trackauth.infra.mail import build_email_sender
from trackauth.infra.security.werkzeug_hasher import WerkzeugSecretHasher
from trackauth.services.auth.dto import AuthTokenConfig
from trackauth.services.auth.service import AuthService

EXTENSION_KEY = "auth_service"


def token_config_from(app: Flask) -> AuthTokenConfig:
    """Translate lifetime settings into an :class:`AuthTokenConfig`."""
    return AuthTokenConfig(
        access_expires=timedelta(minutes=int(app.config["AUTH_ACCESS_TOKEN_MINUTES"])),
        refresh_expires=timedelta(days=int(app.config["AUTH_REFRESH_TOKEN_DAYS"])),
        reset_expires=timedelta(minutes=int(app.config["AUTH_RESET_TOKEN_MINUTES"])),
    )


def build_auth_service(app: Flask) -> AuthService:
    """Assemble an :class:`AuthService` from the app configuration.

    :param app: Configured application.
    :type app: flask.Flask
    :returns: Orchestrator holding only immutable collaborators.
    :rtype: AuthService
    """
    return AuthService(
        token_provider=JWTTokenProvider(),
        hasher=WerkzeugSecretHasher(method=app.config["PASSWORD_HASH_METHOD"]),
        email_sender=build_email_sender(app),
        token_cfg=token_config_from(app),
    )


def init_app(app: Flask) -> None:
    """Build the orchestrator once and store it on ``app.extensions``."""
    app.extensions[EXTENSION_KEY] = build_auth_service(app)


def get_auth_service() -> AuthService:
    """Return the orchestrator bound to the current application."""
    return cast(AuthService, current_app.extensions[EXTENSION_KEY])
