"""Application factory wiring Flask extensions, services and blueprints."""

from __future__ import annotations

from flask import Flask

from trackauth.core.config import CONFIG_MAP, BaseConfig, get_config
from trackauth.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application."""

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    if config is None:
        config = get_config()
    elif isinstance(config, str) and config in CONFIG_MAP:
        config = CONFIG_MAP[config]
    app.config.from_object(config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Proxy headers and CORS policy
    from trackauth.core import web

    web.init_app(app)

    from trackauth.core import extensions

    extensions.init_app(app)

    init_logging(app)

    # Auth orchestrator is built once per process
    from trackauth.core import services

    services.init_app(app)

    from trackauth.api import init_app as init_api

    init_api(app)

    from trackauth.core import errors

    errors.init_app(app)

    from trackauth import cli as app_cli

    app_cli.init_app(app)

    return app
