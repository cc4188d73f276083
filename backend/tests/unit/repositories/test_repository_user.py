"""Unit tests for UserRepository."""

from datetime import UTC, datetime

import pytest
from trackauth.models.user import User
from trackauth.repositories.user import UserRepository

from tests.factories.user import UserFactory


class TestUserRepository:
    """Ensure ``UserRepository`` performs core persistence operations."""

    @pytest.fixture()
    def repo(self, session):
        return UserRepository(session=session)

    def test_get_by_email_is_case_insensitive(self, repo, session):
        u = UserFactory(email="alice@example.com", username="alice")

        fetched = repo.get_by_email("  ALICE@Example.com ")
        assert fetched is not None
        assert fetched.id == u.id
        assert fetched.username == "alice"

    def test_get_by_unknown_email(self, repo, session):
        UserFactory(email="bob@example.com")
        assert repo.get_by_email("nonexistent@example.com") is None

    def test_set_password_hash(self, repo, session):
        u = UserFactory(email="c@example.com")

        assert repo.set_password_hash(u.id, "new-digest") == 1
        session.commit()

        assert repo.get(u.id).password_hash == "new-digest"

    def test_set_password_hash_for_missing_user_affects_nothing(self, repo, session):
        assert repo.set_password_hash("does-not-exist", "digest") == 0

    def test_touch_last_login(self, repo, session):
        u = UserFactory()
        when = datetime(2031, 5, 6, 7, 8, 9, tzinfo=UTC)

        assert repo.touch_last_login(u.id, when) == 1
        session.commit()

        assert repo.get(u.id).last_login == when

    def test_add_flushes_generated_id(self, repo, session):
        user = repo.add(User(username="dora", email="dora@example.com", password_hash="x"))
        assert user.id is not None
        session.rollback()
