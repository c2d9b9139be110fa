"""
Unit tests for authentication helpers
"""
import time
from datetime import timedelta

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from sqlmodel import Session

from ghostframe.auth import (
    verify_password, get_password_hash, create_access_token, create_refresh_token,
    decode_token, verify_token, refresh_access_token, get_current_user, get_optional_user,
)
from ghostframe.db import engine, init_db
from ghostframe.models import User


def bearer(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.fixture
def session():
    init_db()
    with Session(engine) as db:
        yield db


@pytest.fixture
def stored_user(session):
    user = User(email="grace@example.com", username="grace",
                hashed_password=get_password_hash("cobol123"))
    session.add(user)
    session.commit()
    session.refresh(user)
    yield user
    session.delete(user)
    session.commit()


class TestPasswordHashing:
    def test_password_hashing(self):
        hashed = get_password_hash("ghost_password_1")
        assert hashed != "ghost_password_1"
        assert verify_password("ghost_password_1", hashed)
        assert not verify_password("wrong_password", hashed)


class TestJWTTokens:
    def test_access_token_round_trip(self):
        token = create_access_token("42")
        assert isinstance(token, str)
        assert decode_token(token) == "42"

    def test_refresh_token_payload(self):
        payload = verify_token(create_refresh_token("42"), "refresh")
        assert payload["sub"] == "42"
        assert payload["type"] == "refresh"

    def test_expired_token(self):
        token = create_access_token("42", expires_delta=timedelta(seconds=-1))
        assert decode_token(token) is None

    def test_expiry_is_absolute_utc(self):
        payload = verify_token(create_access_token("42", expires_delta=timedelta(minutes=5)), "access")
        assert abs(payload["exp"] - (time.time() + 300)) < 5

    def test_user_created_at_is_timezone_aware(self):
        user = User(email="tz@example.com", username="tz", hashed_password="x")
        assert user.created_at.tzinfo is not None

    def test_invalid_token(self):
        assert decode_token("invalid.token.here") is None

    def test_refresh_flow(self):
        new_access = refresh_access_token(create_refresh_token("42"))
        assert decode_token(new_access) == "42"

    def test_wrong_token_type(self):
        assert verify_token(create_access_token("42"), "refresh") is None
        assert refresh_access_token(create_access_token("42")) is None


class TestCurrentUser:
    def test_resolves_user_from_token(self, session, stored_user):
        user = get_current_user(bearer(create_access_token(str(stored_user.id))), session)
        assert user.username == "grace"

    def test_missing_credentials(self, session):
        with pytest.raises(HTTPException) as exc:
            get_current_user(None, session)
        assert exc.value.status_code == 401

    def test_non_numeric_subject(self, session):
        with pytest.raises(HTTPException) as exc:
            get_current_user(bearer(create_access_token("not-a-number")), session)
        assert exc.value.detail == "Invalid or expired token"

    def test_optional_user(self, session, stored_user):
        assert get_optional_user(None, session) is None
        assert get_optional_user(bearer("garbage"), session) is None
        assert get_optional_user(bearer(create_access_token(str(stored_user.id))), session).id == stored_user.id
