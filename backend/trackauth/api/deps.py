"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from trackauth.core.services import get_auth_service
from trackauth.services._shared.errors import ServiceError

F = TypeVar("F", bound=Callable[..., Any])


def json_body() -> dict[str, Any]:
    """Return the parsed JSON object of the request, or an empty dict."""

    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access token.

    The authenticated user id is passed to the view as the ``user_id``
    keyword argument. Missing, malformed or expired tokens are rendered as
    401 problems by the JWT loader callbacks.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        kwargs["user_id"] = str(get_jwt_identity())
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def service_errors(func: F) -> F:
    """Translate service-layer errors into API errors for the problem handlers."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        try:
            return func(*args, **kwargs)
        except ServiceError as exc:
            raise get_auth_service().translate_exceptions(exc) from exc

    return wrapper  # type: ignore[return-value]


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
