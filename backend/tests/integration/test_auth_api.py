"""Integration tests for the ``/api/v1/auth`` endpoints."""

from __future__ import annotations

from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token

from tests.factories import utc_in
from tests.factories.password_reset import PasswordResetFactory
from tests.helpers.assertions import assert_json_keys, assert_problem
from trackauth.core.services import get_auth_service
from trackauth.services._shared.errors import UnauthorizedError

BASE = "/api/v1/auth"
ALICE = {
    "username": "alice",
    "email": "A@B.com",
    "password": "Secret1",
    "password_confirm": "Secret1",
}


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def registered(client) -> dict:
    """Register ``alice`` through the API and return the session payload."""
    resp = client.post(f"{BASE}/register", json=ALICE)
    assert resp.status_code == 201, resp.get_data(as_text=True)
    return resp.get_json()["data"]


class TestRegisterAndLogin:
    def test_register_returns_user_and_tokens(self, registered) -> None:
        assert_json_keys(registered, {"user", "access_token", "refresh_token", "token_type"})
        assert registered["token_type"] == "bearer"
        assert registered["user"]["email"] == "a@b.com"
        assert registered["user"]["username"] == "alice"
        assert "password_hash" not in registered["user"]

    def test_duplicate_registration_conflicts(self, client, registered) -> None:
        resp = client.post(f"{BASE}/register", json={**ALICE, "username": "alice2"})
        assert_problem(resp, 409, "conflict", "user already exists")

    def test_password_confirmation_mismatch(self, client) -> None:
        resp = client.post(f"{BASE}/register", json={**ALICE, "password_confirm": "Other12"})
        assert_problem(resp, 400, "validation_error", "passwords do not match")

    def test_malformed_payload_is_422(self, client) -> None:
        resp = client.post(f"{BASE}/register", json={"username": "al", "email": "nope"})
        body = assert_problem(resp, 422, "validation_error")
        assert {"username", "email", "password", "password_confirm"} <= body["details"]["errors"].keys()

    def test_login_with_normalized_email(self, client, registered) -> None:
        resp = client.post(f"{BASE}/login", json={"email": "a@b.com", "password": "Secret1"})

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["user"]["id"] == registered["user"]["id"]
        assert data["user"]["last_login"] is not None

    def test_login_wrong_password(self, client, registered) -> None:
        resp = client.post(f"{BASE}/login", json={"email": "a@b.com", "password": "wrong"})
        assert_problem(resp, 401, "invalid_credentials", "invalid credentials")

    def test_response_carries_request_id(self, client, registered) -> None:
        resp = client.post(
            f"{BASE}/login",
            json={"email": "a@b.com", "password": "wrong"},
            headers={"X-Request-ID": "req-123"},
        )
        assert resp.headers["X-Request-ID"] == "req-123"
        assert resp.get_json()["request_id"] == "req-123"


class TestRefresh:
    def test_rotation_and_replay(self, client, registered) -> None:
        old = registered["refresh_token"]

        first = client.post(f"{BASE}/refresh", json={"refresh_token": old})
        assert first.status_code == 200
        assert first.get_json()["data"]["refresh_token"] != old

        replay = client.post(f"{BASE}/refresh", json={"refresh_token": old})
        assert_problem(replay, 401, "unauthorized", "invalid or expired refresh token")

    @pytest.mark.parametrize("payload", [{}, {"refresh_token": None}, {"refresh_token": ""}])
    def test_missing_secret(self, client, db, payload) -> None:
        resp = client.post(f"{BASE}/refresh", json=payload)
        assert_problem(resp, 401, "unauthorized", "missing refresh token")


class TestLogout:
    def test_requires_bearer_token(self, client, db) -> None:
        resp = client.post(f"{BASE}/logout", json={})
        assert_problem(resp, 401, "unauthorized", "missing access token")

    def test_rejects_expired_bearer_token(self, app, client, registered) -> None:
        token = create_access_token(
            identity=registered["user"]["id"], expires_delta=timedelta(seconds=-1)
        )
        resp = client.post(f"{BASE}/logout", json={}, headers=_bearer(token))
        assert_problem(resp, 401, "unauthorized", "access token has expired")

    def test_rejects_forged_bearer_token(self, client, db) -> None:
        resp = client.post(f"{BASE}/logout", json={}, headers=_bearer("abc.def.ghi"))
        assert_problem(resp, 401, "unauthorized")

    def test_single_session(self, client, registered) -> None:
        headers = _bearer(registered["access_token"])
        resp = client.post(
            f"{BASE}/logout", json={"refresh_token": registered["refresh_token"]}, headers=headers
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["message"] == "logged out successfully"

        again = client.post(
            f"{BASE}/logout", json={"refresh_token": registered["refresh_token"]}, headers=headers
        )
        assert_problem(again, 400, "bad_request", "invalid or expired refresh token")

    def test_all_sessions(self, client, registered) -> None:
        second = client.post(f"{BASE}/login", json={"email": "a@b.com", "password": "Secret1"})
        second_refresh = second.get_json()["data"]["refresh_token"]

        resp = client.post(f"{BASE}/logout", json={}, headers=_bearer(registered["access_token"]))
        assert resp.status_code == 200

        for secret in (registered["refresh_token"], second_refresh):
            assert client.post(f"{BASE}/refresh", json={"refresh_token": secret}).status_code == 401


class TestPasswordFlows:
    def test_forgot_password_does_not_reveal_accounts(self, client, registered, app_outbox) -> None:
        known = client.post(f"{BASE}/password/forgot", json={"email": "a@b.com"})
        unknown = client.post(f"{BASE}/password/forgot", json={"email": "nouser@b.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.get_data() == unknown.get_data()
        assert [m.to for m in app_outbox.messages] == ["a@b.com"]

    def test_forgot_password_requires_email(self, client, db) -> None:
        resp = client.post(f"{BASE}/password/forgot", json={"email": "  "})
        assert_problem(resp, 400, "bad_request", "email is required")

    def test_reset_flow_end_to_end(self, client, registered, app_outbox) -> None:
        client.post(f"{BASE}/password/forgot", json={"email": "a@b.com"})
        token = app_outbox.last_token_for("a@b.com")

        resp = client.post(
            f"{BASE}/password/reset", json={"token": token, "new_password": "NewSecret2"}
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["message"] == "password has been reset"

        stale = client.post(f"{BASE}/refresh", json={"refresh_token": registered["refresh_token"]})
        assert stale.status_code == 401
        login = client.post(f"{BASE}/login", json={"email": "a@b.com", "password": "NewSecret2"})
        assert login.status_code == 200

        reused = client.post(
            f"{BASE}/password/reset", json={"token": token, "new_password": "NewSecret3"}
        )
        assert_problem(reused, 400, "bad_request", "invalid or expired reset token")

    def test_expired_reset_token(self, client, db) -> None:
        PasswordResetFactory(secret="7" * 64, expires_at=utc_in(minutes=-1))
        resp = client.post(
            f"{BASE}/password/reset", json={"token": "7" * 64, "new_password": "NewSecret2"}
        )
        assert_problem(resp, 400, "bad_request", "invalid or expired reset token")

    def test_change_password(self, client, registered) -> None:
        headers = _bearer(registered["access_token"])

        same = client.patch(
            f"{BASE}/password/change",
            json={"current_password": "Secret1", "new_password": "Secret1"},
            headers=headers,
        )
        assert_problem(same, 400, "bad_request", "new password is already the current password")

        wrong = client.patch(
            f"{BASE}/password/change",
            json={"current_password": "nope", "new_password": "Secret2"},
            headers=headers,
        )
        assert_problem(wrong, 400, "bad_request", "current password is incorrect")

        ok = client.patch(
            f"{BASE}/password/change",
            json={"current_password": "Secret1", "new_password": "Secret2"},
            headers=headers,
        )
        assert ok.status_code == 200
        assert ok.get_json()["data"]["message"] == "password changed successfully"
        stale = client.post(f"{BASE}/refresh", json={"refresh_token": registered["refresh_token"]})
        assert stale.status_code == 401

    def test_change_password_for_unknown_user(self, client, auth_headers) -> None:
        resp = client.patch(
            f"{BASE}/password/change",
            json={"current_password": "Secret1", "new_password": "Secret2"},
            headers=auth_headers("no-such-user"),
        )
        assert_problem(resp, 401, "unauthorized", "invalid credentials")


class TestAccessTokenResolution:
    def test_issued_access_token_resolves_outside_the_http_layer(self, app, registered) -> None:
        service = get_auth_service()

        assert service.resolve_user_id(registered["access_token"]) == registered["user"]["id"]
        with pytest.raises(UnauthorizedError):
            service.resolve_user_id(registered["refresh_token"])
