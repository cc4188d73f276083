"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint

from trackauth.api.deps import json_body, json_response, require_auth, service_errors, timing
from trackauth.core.services import get_auth_service
from trackauth.schemas import (
    AuthSessionSchema,
    ChangePasswordSchema,
    ForgotPasswordSchema,
    LoginSchema,
    LogoutSchema,
    MessageSchema,
    RefreshSchema,
    RegisterSchema,
    ResetPasswordSchema,
)
from trackauth.services.auth.dto import (
    ChangePasswordIn,
    ForgotPasswordIn,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    ResetPasswordIn,
)

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
forgot_schema = ForgotPasswordSchema()
reset_schema = ResetPasswordSchema()
change_schema = ChangePasswordSchema()
session_schema = AuthSessionSchema()
message_schema = MessageSchema()


@bp.post("/register")
@timing
@service_errors
def register():
    """Create an account and return the first session."""

    data = register_schema.load(json_body())
    out = get_auth_service().register(RegisterIn(**data))
    return json_response({"data": session_schema.dump(out)}, status=201)


@bp.post("/login")
@timing
@service_errors
def login():
    """Authenticate credentials and open a session."""

    data = login_schema.load(json_body())
    out = get_auth_service().login(LoginIn(**data))
    return json_response({"data": session_schema.dump(out)})


@bp.post("/refresh")
@timing
@service_errors
def refresh():
    """Rotate a refresh token into a new session."""

    data = refresh_schema.load(json_body())
    out = get_auth_service().refresh(RefreshIn(**data))
    return json_response({"data": session_schema.dump(out)})


@bp.post("/logout")
@timing
@require_auth
@service_errors
def logout(user_id: str):
    """End one session (``refresh_token`` given) or all sessions of the caller."""

    data = logout_schema.load(json_body())
    out = get_auth_service().logout(LogoutIn(user_id=user_id, **data))
    return json_response({"data": message_schema.dump(out)})


@bp.post("/password/forgot")
@timing
@service_errors
def forgot_password():
    data = forgot_schema.load(json_body())
    out = get_auth_service().forgot_password(ForgotPasswordIn(**data))
    return json_response({"data": message_schema.dump(out)})


@bp.post("/password/reset")
@timing
@service_errors
def reset_password():
    data = reset_schema.load(json_body())
    out = get_auth_service().reset_password(ResetPasswordIn(**data))
    return json_response({"data": message_schema.dump(out)})


@bp.patch("/password/change")
@timing
@require_auth
@service_errors
def change_password(user_id: str):
    """Change the caller's password; every refresh token is revoked."""

    data = change_schema.load(json_body())
    out = get_auth_service().change_password(ChangePasswordIn(user_id=user_id, **data))
    return json_response({"data": message_schema.dump(out)})
