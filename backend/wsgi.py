"""WSGI entrypoint: ``gunicorn -c gunicorn.conf.py wsgi:app`` from ``backend/``."""

from trackauth import create_app

app = create_app()
