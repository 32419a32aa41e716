"""Integration tests for syncing authenticated callers into the users table."""

from sqlalchemy import insert

from studio.models import User
from studio.schemas.auth import AuthUser
from studio.services.auth_service import ensure_user_exists


class TestEnsureUserExists:

    def test_inserts_new_user(self, db_session):
        user = ensure_user_exists(db_session, AuthUser(id="user-7", email="u7@example.com", first_name="Ada"))

        assert user.id == "user-7"
        assert user.first_name == "Ada"
        assert db_session.query(User).filter(User.id == "user-7").count() == 1

    def test_existing_user_is_returned_unchanged(self, db_session, seed):
        seed.user("user-1")

        user = ensure_user_exists(db_session, AuthUser(id="user-1", email="changed@example.com"))

        assert user.email == "user-1@example.com"

    def test_concurrent_first_request_returns_winning_row(self, db_session, monkeypatch):
        """Another request inserts the same user between the lookup and the insert."""
        real_add = db_session.add

        def add_after_competing_insert(instance):
            db_session.execute(insert(User).values(id="user-7", email="first@example.com"))
            db_session.commit()
            real_add(instance)

        monkeypatch.setattr(db_session, "add", add_after_competing_insert)

        user = ensure_user_exists(db_session, AuthUser(id="user-7", email="second@example.com"))

        assert user.email == "first@example.com"
        assert db_session.query(User).filter(User.id == "user-7").count() == 1
