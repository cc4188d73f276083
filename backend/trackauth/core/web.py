"""WSGI proxy and CORS configuration for the HTTP surface."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from trackauth.core.logger import REQUEST_ID_HEADER


def init_proxy(app: Flask) -> None:
    """Apply :class:`~werkzeug.middleware.proxy_fix.ProxyFix` when ``USE_PROXYFIX`` is set.

    A single upstream hop is trusted for ``X-Forwarded-*`` headers.
    """
    if app.config.get("USE_PROXYFIX", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)


def init_cors(app: Flask) -> None:
    """Configure CORS for the API prefix.

    Blank or ``"*"`` origins allow any origin but disable credential support.
    The ``Authorization`` header is allowed for bearer tokens and the
    correlation header is exposed to browser clients.
    """
    raw_origins = app.config.get("CORS_ORIGINS", "") or ""
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]
    prefix = app.config.get("API_BASE_PREFIX", "/api").rstrip("/")

    CORS(
        app,
        resources={rf"{prefix}/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )


def init_app(app: Flask) -> None:
    """Install proxy handling and CORS on ``app``."""
    init_proxy(app)
    init_cors(app)
