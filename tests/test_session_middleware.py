import uuid
from datetime import datetime, timedelta, timezone

from sqlmodel import select

from conftest import create_user, register
from vegbazar.core.security import create_token_pair, hash_token
from vegbazar.models.user import User

ME = "/api/v1/auth/me"


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def signed_in_user(session, **fields) -> tuple[User, str]:
    """Create a user with a live session; returns (user, raw access token)."""
    user = create_user(session, **fields)
    tokens = create_token_pair(user.id, user.role)
    user.access_token_hash = hash_token(tokens.access_token)
    user.refresh_token_hash = hash_token(tokens.refresh_token)
    user.is_logged_in = True
    session.add(user)
    session.commit()
    return user, tokens.access_token


def test_missing_token(client):
    resp = client.get(ME)
    assert resp.status_code == 401
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Authentication required"
    assert body["data"] == {"code": "token_missing"}
    assert resp.headers["www-authenticate"] == "Bearer"


def test_bearer_header_is_accepted(client, session):
    user, access = signed_in_user(session, email="b@example.com")
    resp = client.get(ME, headers=bearer(access))
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == str(user.id)


def test_cookie_takes_precedence_over_header(client):
    register(client)
    resp = client.get(ME, headers=bearer("garbage"))
    assert resp.status_code == 200


def test_expired_and_invalid_are_distinguished(client, session):
    user = create_user(session, email="e@example.com")
    past = datetime.now(timezone.utc) - timedelta(hours=5)
    expired = create_token_pair(user.id, user.role, now=past).access_token

    resp = client.get(ME, headers=bearer(expired))
    assert resp.status_code == 401
    assert resp.json()["data"]["code"] == "token_expired"

    resp = client.get(ME, headers=bearer("abc.def.ghi"))
    assert resp.status_code == 401
    assert resp.json()["data"]["code"] == "token_invalid"


def test_refresh_token_cannot_be_used_as_access_token(client, session):
    user = create_user(session, email="r@example.com")
    refresh = create_token_pair(user.id, user.role).refresh_token
    resp = client.get(ME, headers=bearer(refresh))
    assert resp.status_code == 401
    assert resp.json()["data"]["code"] == "token_invalid"


def test_valid_signature_without_stored_fingerprint_is_revoked(client, session):
    user, _ = signed_in_user(session, email="f@example.com")
    other = create_token_pair(user.id, user.role).access_token
    resp = client.get(ME, headers=bearer(other))
    assert resp.status_code == 401
    assert resp.json()["data"]["code"] == "session_revoked"


def test_token_for_unknown_user(client):
    token = create_token_pair(uuid.uuid4(), "user").access_token
    resp = client.get(ME, headers=bearer(token))
    assert resp.status_code == 401


def test_deactivated_account_is_forbidden(client, session):
    user, access = signed_in_user(session, email="d@example.com")
    user.is_active = False
    session.add(user)
    session.commit()

    resp = client.get(ME, headers=bearer(access))
    assert resp.status_code == 403


def test_pending_staff_is_forbidden(client, session):
    _, access = signed_in_user(
        session, email="ed@example.com", role="editor", is_approved=False
    )
    resp = client.get(ME, headers=bearer(access))
    assert resp.status_code == 403
    assert resp.json()["message"] == "Your account is pending approval"


def test_role_gate(client, session):
    _, access = signed_in_user(session, email="u@example.com")
    resp = client.get("/api/v1/users", headers=bearer(access))
    assert resp.status_code == 403
    assert resp.json()["message"] == "Access denied"


def test_login_count_increments_once_per_login(make_client, session):
    register(make_client())
    for _ in range(3):
        make_client().post(
            "/api/v1/auth/login", json={"email": "asha@example.com", "password": "secret1"}
        )
    session.expire_all()
    user = session.exec(select(User).where(User.email == "asha@example.com")).one()
    assert user.login_count == 4
