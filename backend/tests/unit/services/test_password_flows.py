"""Unit tests for the forgot, reset and change password flows."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import pytest
from freezegun import freeze_time
from sqlalchemy.exc import OperationalError
from trackauth.models import PasswordResetToken, RefreshToken, User
from trackauth.repositories import RefreshTokenRepository
from trackauth.services._shared.errors import (
    BadRequestError,
    InternalError,
    UnauthorizedError,
)
from trackauth.services.auth.dto import (
    ChangePasswordIn,
    ForgotPasswordIn,
    LoginIn,
    RefreshIn,
    RegisterIn,
    ResetPasswordIn,
)
from trackauth.services.auth.service import MSG_RESET_SENT

from tests.factories import utc_in
from tests.factories.password_reset import PasswordResetFactory
from tests.factories.user import ExternalUserFactory, UserFactory


@pytest.fixture()
def alice(service):
    """Registered user ``alice`` with password ``Secret1`` and one open session."""
    return service.register(
        RegisterIn(username="alice", email="A@B.com", password="Secret1", password_confirm="Secret1")
    )


def _boom(*args, **kwargs):
    raise OperationalError("DELETE", {}, Exception("connection reset"))


# --------------------------------------------------------------------------- #
# Forgot password
# --------------------------------------------------------------------------- #


class TestForgotPassword:
    def test_known_and_unknown_email_get_the_same_answer(self, service, alice, outbox):
        known = service.forgot_password(ForgotPasswordIn(email="a@b.com"))
        unknown = service.forgot_password(ForgotPasswordIn(email="nouser@b.com"))

        assert known == unknown
        assert known.message == MSG_RESET_SENT
        assert [m.to for m in outbox.messages] == ["a@b.com"]

    def test_stores_only_a_hash_of_the_mailed_token(self, service, session, alice, outbox, hasher):
        service.forgot_password(ForgotPasswordIn(email=" A@B.com "))

        token = outbox.last_token_for("a@b.com")
        assert token is not None and len(token) == 64

        record = session.query(PasswordResetToken).one()
        assert record.user_id == alice.user.id
        assert record.used is False
        assert record.token_hash != token
        assert hasher.compare(token, record.token_hash)
        assert record.expires_at <= utc_in(hours=1)

    @pytest.mark.parametrize("email", ["", "   "])
    def test_blank_email(self, service, email):
        with pytest.raises(BadRequestError) as err:
            service.forgot_password(ForgotPasswordIn(email=email))
        assert err.value.message == "email is required"

    def test_delivery_failure_keeps_the_token(self, service, session, alice, outbox, monkeypatch, caplog):
        def _fail(*, to, token):
            raise ConnectionError("smtp unreachable")

        monkeypatch.setattr(outbox, "send_password_reset", _fail)
        with caplog.at_level(logging.WARNING, logger="trackauth.services.auth.service"):
            out = service.forgot_password(ForgotPasswordIn(email="a@b.com"))

        assert out.message == MSG_RESET_SENT
        assert session.query(PasswordResetToken).count() == 1
        assert "auth.password.forgot.delivery_failed" in caplog.text

    def test_rejected_delivery_is_logged(self, service, alice, outbox, monkeypatch, caplog):
        monkeypatch.setattr(outbox, "send_password_reset", lambda *, to, token: False)
        with caplog.at_level(logging.WARNING, logger="trackauth.services.auth.service"):
            service.forgot_password(ForgotPasswordIn(email="a@b.com"))
        assert "auth.password.forgot.delivery_failed" in caplog.text


# --------------------------------------------------------------------------- #
# Reset password
# --------------------------------------------------------------------------- #


class TestResetPassword:
    def test_sets_password_and_ends_every_session(self, service, session, alice, outbox):
        service.forgot_password(ForgotPasswordIn(email="a@b.com"))
        token = outbox.last_token_for("a@b.com")

        out = service.reset_password(ResetPasswordIn(token=token, new_password="NewSecret2"))

        assert out.message == "password has been reset"
        assert service.login(LoginIn(email="a@b.com", password="NewSecret2"))
        with pytest.raises(UnauthorizedError):
            service.refresh(RefreshIn(refresh_token=alice.refresh_token))
        session.expire_all()
        assert session.query(PasswordResetToken).one().used is True

    def test_token_cannot_be_reused(self, service, alice, outbox):
        service.forgot_password(ForgotPasswordIn(email="a@b.com"))
        token = outbox.last_token_for("a@b.com")
        service.reset_password(ResetPasswordIn(token=token, new_password="NewSecret2"))

        with pytest.raises(BadRequestError) as err:
            service.reset_password(ResetPasswordIn(token=token, new_password="Other3"))
        assert err.value.message == "invalid or expired reset token"

    def test_expired_token(self, service):
        PasswordResetFactory(secret="9" * 64, expires_at=utc_in(seconds=-1))
        with pytest.raises(BadRequestError, match="invalid or expired reset token"):
            service.reset_password(ResetPasswordIn(token="9" * 64, new_password="NewSecret2"))

    def test_expired_token_stays_rejected_on_every_attempt(self, service, session):
        record = PasswordResetFactory(secret="8" * 64, expires_at=utc_in(minutes=-1))
        record_id, user_id = record.id, record.user_id
        before = session.get(User, user_id).password_hash

        for offset in (timedelta(0), timedelta(hours=1), timedelta(days=400)):
            with freeze_time(datetime.now(UTC) + offset), pytest.raises(BadRequestError) as err:
                service.reset_password(ResetPasswordIn(token="8" * 64, new_password="NewSecret2"))
            assert err.value.message == "invalid or expired reset token"

        session.expire_all()
        assert session.get(PasswordResetToken, record_id).used is False
        assert session.get(User, user_id).password_hash == before

    @pytest.mark.parametrize("token", ["", "0" * 64])
    def test_unknown_or_empty_token(self, service, token):
        PasswordResetFactory(secret="1" * 64)
        with pytest.raises(BadRequestError):
            service.reset_password(ResetPasswordIn(token=token, new_password="NewSecret2"))

    def test_newest_request_is_usable_alongside_older_ones(self, service, alice, outbox):
        service.forgot_password(ForgotPasswordIn(email="a@b.com"))
        older = outbox.last_token_for("a@b.com")
        service.forgot_password(ForgotPasswordIn(email="a@b.com"))
        newer = outbox.last_token_for("a@b.com")

        service.reset_password(ResetPasswordIn(token=newer, new_password="NewSecret2"))
        service.reset_password(ResetPasswordIn(token=older, new_password="NewSecret3"))

        assert service.login(LoginIn(email="a@b.com", password="NewSecret3"))

    def test_concurrently_consumed_token(self, service, session, monkeypatch):
        record = PasswordResetFactory(secret="2" * 64)
        user_id = record.user_id
        before = session.get(User, user_id).password_hash
        monkeypatch.setattr(
            "trackauth.repositories.password_reset.PasswordResetRepository.mark_used",
            lambda self, _id: 0,
        )

        with pytest.raises(BadRequestError):
            service.reset_password(ResetPasswordIn(token="2" * 64, new_password="NewSecret2"))
        session.expire_all()
        assert session.get(User, user_id).password_hash == before

    def test_storage_failure_applies_nothing(self, service, session, alice, outbox, hasher, monkeypatch):
        service.forgot_password(ForgotPasswordIn(email="a@b.com"))
        token = outbox.last_token_for("a@b.com")
        monkeypatch.setattr(RefreshTokenRepository, "delete_for_user", _boom)

        with pytest.raises(InternalError):
            service.reset_password(ResetPasswordIn(token=token, new_password="NewSecret2"))

        session.expire_all()
        user = session.get(User, alice.user.id)
        assert hasher.compare("Secret1", user.password_hash)
        assert session.query(PasswordResetToken).one().used is False
        assert session.query(RefreshToken).filter_by(user_id=alice.user.id).count() == 1


# --------------------------------------------------------------------------- #
# Change password
# --------------------------------------------------------------------------- #


class TestChangePassword:
    def test_changes_password_and_ends_every_session(self, service, session, alice):
        service.login(LoginIn(email="a@b.com", password="Secret1"))

        out = service.change_password(
            ChangePasswordIn(user_id=alice.user.id, current_password="Secret1", new_password="Secret2")
        )

        assert out.message == "password changed successfully"
        session.expire_all()
        assert session.query(RefreshToken).filter_by(user_id=alice.user.id).count() == 0
        with pytest.raises(UnauthorizedError):
            service.refresh(RefreshIn(refresh_token=alice.refresh_token))
        assert service.login(LoginIn(email="a@b.com", password="Secret2"))

    def test_identical_password_is_rejected(self, service, alice):
        with pytest.raises(BadRequestError) as err:
            service.change_password(
                ChangePasswordIn(user_id=alice.user.id, current_password="Secret1", new_password="Secret1")
            )
        assert err.value.message == "new password is already the current password"

    def test_wrong_current_password(self, service, alice):
        with pytest.raises(BadRequestError) as err:
            service.change_password(
                ChangePasswordIn(user_id=alice.user.id, current_password="nope", new_password="Secret2")
            )
        assert err.value.message == "current password is incorrect"

    def test_unknown_user(self, service, db):
        with pytest.raises(UnauthorizedError, match="invalid credentials"):
            service.change_password(
                ChangePasswordIn(user_id="missing", current_password="a", new_password="b")
            )

    def test_account_without_password(self, service):
        user = ExternalUserFactory()
        with pytest.raises(UnauthorizedError):
            service.change_password(
                ChangePasswordIn(user_id=user.id, current_password="", new_password="b")
            )

    def test_storage_failure_applies_nothing(self, service, session, monkeypatch, hasher):
        user = UserFactory(password="Secret1")
        user_id = user.id
        monkeypatch.setattr(RefreshTokenRepository, "delete_for_user", _boom)

        with pytest.raises(InternalError):
            service.change_password(
                ChangePasswordIn(user_id=user_id, current_password="Secret1", new_password="Secret2")
            )
        session.expire_all()
        assert hasher.compare("Secret1", session.get(User, user_id).password_hash)
