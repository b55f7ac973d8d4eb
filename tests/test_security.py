import uuid
from datetime import datetime, timedelta, timezone

import pytest

from vegbazar.core.config import get_settings
from vegbazar.core.cookies import cookie_options
from vegbazar.core.security import (
    TokenExpiredError,
    TokenInvalidError,
    create_token_pair,
    decode_access_token,
    decode_refresh_token,
    generate_random_token,
    hash_password,
    hash_token,
    verify_password,
)


def test_password_hash_roundtrip():
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("secret2", hashed)


def test_verify_password_without_hash_is_false():
    assert not verify_password("anything", None)
    assert not verify_password("anything", "not-a-bcrypt-hash")


def test_random_tokens_are_unique_and_hash_is_stable():
    a, b = generate_random_token(), generate_random_token()
    assert a != b
    assert len(a) == 64
    assert hash_token(a) == hash_token(a)
    assert hash_token(a) != a


def test_token_pair_claims():
    user_id = uuid.uuid4()
    tokens = create_token_pair(user_id, "user")

    access = decode_access_token(tokens.access_token)
    refresh = decode_refresh_token(tokens.refresh_token)

    assert access["sub"] == str(user_id)
    assert access["role"] == "user"
    assert access["type"] == "access"
    assert refresh["type"] == "refresh"
    assert "role" not in refresh
    assert tokens.access_max_age == 120 * 60


def test_refresh_lifetime_depends_on_role():
    user_tokens = create_token_pair(uuid.uuid4(), "user")
    admin_tokens = create_token_pair(uuid.uuid4(), "admin")
    assert user_tokens.refresh_max_age == 7 * 24 * 3600
    assert admin_tokens.refresh_max_age == 30 * 24 * 3600


def test_pairs_issued_together_differ():
    user_id = uuid.uuid4()
    now = datetime.now(timezone.utc)
    first = create_token_pair(user_id, "user", now=now)
    second = create_token_pair(user_id, "user", now=now)
    assert first.refresh_token != second.refresh_token
    assert first.access_token != second.access_token


def test_expired_access_token_is_reported_as_expired():
    past = datetime.now(timezone.utc) - timedelta(hours=3)
    tokens = create_token_pair(uuid.uuid4(), "user", now=past)
    with pytest.raises(TokenExpiredError):
        decode_access_token(tokens.access_token)


def test_token_kinds_are_not_interchangeable():
    tokens = create_token_pair(uuid.uuid4(), "user")
    with pytest.raises(TokenInvalidError):
        decode_access_token(tokens.refresh_token)
    with pytest.raises(TokenInvalidError):
        decode_refresh_token(tokens.access_token)


def test_garbage_token_is_invalid():
    with pytest.raises(TokenInvalidError):
        decode_access_token("not.a.jwt")


def test_cookie_options_development():
    settings = get_settings()
    options = cookie_options("admin", settings)
    assert options["httponly"] is True
    assert options["secure"] is False
    assert options["samesite"] == "lax"
    assert "domain" not in options


def test_cookie_options_production_uses_role_domain():
    settings = get_settings().model_copy(update={"ENVIRONMENT": "production"})
    admin = cookie_options("admin", settings)
    assert admin["secure"] is True
    assert admin["samesite"] == "none"
    assert admin["domain"] == settings.ROLE_COOKIE_DOMAINS["admin"]
    assert cookie_options("unknown", settings)["domain"] == settings.ROLE_COOKIE_DOMAINS["user"]
