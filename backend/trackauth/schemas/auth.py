"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

PROVIDERS = ("email", "google")


class RegisterSchema(Schema):
    """Input payload for account registration."""

    username = fields.String(required=True, validate=validate.Length(min=3, max=50))
    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=6, max=128))
    password_confirm = fields.String(required=True)
    provider = fields.String(load_default="email", validate=validate.OneOf(PROVIDERS))


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(Schema):
    """Input payload for rotating a refresh token.

    A missing, null or empty token is accepted here and rejected with 401 by the
    service so clients get one consistent error for absent credentials.
    """

    refresh_token = fields.String(load_default="", allow_none=True)


class LogoutSchema(Schema):
    """Optional refresh token; omit it to end every session of the caller."""

    refresh_token = fields.String(load_default=None, allow_none=True)


class ForgotPasswordSchema(Schema):
    email = fields.String(load_default="", validate=validate.Length(max=254))


class ResetPasswordSchema(Schema):
    token = fields.String(required=True)
    new_password = fields.String(required=True, validate=validate.Length(min=6, max=128))


class ChangePasswordSchema(Schema):
    """Input payload for an authenticated password change."""

    current_password = fields.String(required=True, validate=validate.Length(min=1, max=128))
    new_password = fields.String(required=True, validate=validate.Length(min=6, max=128))


class UserSchema(Schema):
    """Public representation of a user entity."""

    id = fields.String(required=True)
    username = fields.String(required=True)
    email = fields.Email(required=True)
    provider = fields.String(required=True)
    email_verified = fields.Boolean(required=True)
    created_at = fields.DateTime(required=True)
    last_login = fields.DateTime(allow_none=True)


class AuthSessionSchema(Schema):
    """Response payload for register, login and refresh."""

    user = fields.Nested(UserSchema, required=True)
    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    token_type = fields.Constant("bearer")


class MessageSchema(Schema):
    message = fields.String(required=True)
