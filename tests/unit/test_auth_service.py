"""Unit tests for session token parsing."""

from datetime import timedelta
from types import SimpleNamespace

import pytest
from jose import jwt

from studio.common.exceptions import Unauthorized
from studio.schemas.auth import AuthUser


def _request(headers=None, cookies=None):
    return SimpleNamespace(headers=headers or {}, cookies=cookies or {})


class TestVerifyToken:

    def test_round_trips_identity(self, auth_provider):
        token = auth_provider.create_session_token(AuthUser(id="u-7", email="u7@example.com", first_name="Ada"))

        user = auth_provider.verify_token(token)

        assert user.id == "u-7"
        assert user.email == "u7@example.com"
        assert user.first_name == "Ada"
        assert user.last_name is None

    def test_expired_token_rejected(self, auth_provider):
        token = auth_provider.create_session_token(
            AuthUser(id="u-7", email="u7@example.com"),
            expires_delta=timedelta(seconds=-5),
        )
        with pytest.raises(Unauthorized):
            auth_provider.verify_token(token)

    def test_wrong_secret_rejected(self, auth_provider):
        token = jwt.encode({"sub": "u-7", "email": "u7@example.com"}, "other-secret", "HS256")
        with pytest.raises(Unauthorized):
            auth_provider.verify_token(token)

    def test_missing_email_rejected(self, auth_provider):
        token = jwt.encode({"sub": "u-7"}, "test-secret", "HS256")
        with pytest.raises(Unauthorized):
            auth_provider.verify_token(token)

    def test_garbage_rejected(self, auth_provider):
        with pytest.raises(Unauthorized):
            auth_provider.verify_token("not.a.jwt")


class TestRequireAuth:

    def test_reads_bearer_header(self, auth_provider):
        token = auth_provider.create_session_token(AuthUser(id="u-1", email="u1@example.com"))
        request = _request(headers={"authorization": f"Bearer {token}"})

        assert auth_provider.require_auth(request).id == "u-1"

    def test_falls_back_to_session_cookie(self, auth_provider):
        token = auth_provider.create_session_token(AuthUser(id="u-2", email="u2@example.com"))
        request = _request(cookies={"studio-session": token})

        assert auth_provider.require_auth(request).id == "u-2"

    def test_missing_token_rejected(self, auth_provider):
        with pytest.raises(Unauthorized):
            auth_provider.require_auth(_request())
