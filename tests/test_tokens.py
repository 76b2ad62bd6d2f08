"""Unit tests for auth/tokens.py -- session tokens and password hashing."""

from datetime import datetime, timedelta, timezone

from jose import jwt

from auth.models import User
from auth.store import UserStore
from auth.tokens import (
    ALGORITHM,
    authenticate_user,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from core.config import get_settings


def test_round_trip_carries_user_id() -> None:
    payload = decode_access_token(create_access_token(42))
    assert payload["user_id"] == 42
    assert payload["sub"] == "42"


def test_expired_token_rejected() -> None:
    token = jwt.encode(
        {"sub": "1", "user_id": 1, "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        get_settings().secret_key,
        algorithm=ALGORITHM,
    )
    assert decode_access_token(token) is None


def test_foreign_signature_rejected() -> None:
    token = jwt.encode({"sub": "1", "user_id": 1}, "f" * 64, algorithm=ALGORITHM)
    assert decode_access_token(token) is None


def test_non_integer_user_id_rejected() -> None:
    exp = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = jwt.encode({"sub": "x", "user_id": "1", "exp": exp}, get_settings().secret_key, algorithm=ALGORITHM)
    assert decode_access_token(token) is None


def test_garbage_rejected() -> None:
    assert decode_access_token("a.b.c") is None


def test_password_hashing() -> None:
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)
    assert not verify_password("anything", "not-a-bcrypt-hash")


def test_authenticate_user() -> None:
    store = UserStore("sqlite:///:memory:")
    try:
        store.create_user(User(username="carol", hashed_password=hash_password("s3cret-pass")))
        assert authenticate_user(store, "carol", "s3cret-pass").username == "carol"
        assert authenticate_user(store, "carol", "wrong") is None
        assert authenticate_user(store, "nobody", "s3cret-pass") is None
    finally:
        store.close()
