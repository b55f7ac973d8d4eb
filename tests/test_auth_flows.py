from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from conftest import ADMIN_PASSWORD, create_user, register
from vegbazar.core.security import create_token_pair, hash_token
from vegbazar.models.user import User
from vegbazar.routers import auth as auth_router

API = "/api/v1/auth"


def fetch_user(session, email: str) -> User:
    session.expire_all()
    return session.exec(select(User).where(User.email == email)).one()


def count_users(session) -> int:
    session.expire_all()
    return len(session.exec(select(User)).all())


# ----- Register -----


def test_register_sets_cookies_and_sends_welcome(client, session, mailer):
    resp = client.post(
        f"{API}/register",
        json={"username": "abc", "email": "a@b.com", "password": "secret1"},
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["statuscode"] == 201
    assert body["success"] is True
    assert body["data"]["user"]["username"] == "abc"
    assert body["data"]["user"]["role"] == "user"
    assert "password_hash" not in body["data"]["user"]
    assert resp.cookies.get("accessToken")
    assert resp.cookies.get("refreshToken")

    assert [m["to"] for m in mailer.sent] == ["a@b.com"]
    assert "Welcome" in mailer.sent[0]["subject"]

    user = fetch_user(session, "a@b.com")
    assert user.is_logged_in
    assert user.login_count == 1
    assert user.refresh_token_hash == hash_token(resp.cookies["refreshToken"])


def test_register_duplicate_email_is_rejected(client, session):
    payload = {"username": "abc", "email": "a@b.com", "password": "secret1"}
    assert client.post(f"{API}/register", json=payload).status_code == 201

    resp = client.post(f"{API}/register", json={**payload, "username": "other"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "User already exists."
    assert resp.json()["success"] is False
    assert count_users(session) == 1


def test_register_duplicate_email_is_case_insensitive(client):
    assert register(client, email="Asha@Example.com").status_code == 201
    resp = register(client, username="asha2", email="asha@example.com", phone=None)
    assert resp.status_code == 400


def test_register_duplicate_username_and_phone_conflict(client):
    assert register(client).status_code == 201

    resp = register(client, email="other@example.com", phone=None)
    assert resp.status_code == 409
    assert resp.json()["message"] == "Username already taken."

    resp = register(client, username="other", email="other@example.com")
    assert resp.status_code == 409


def test_register_welcome_email_failure_does_not_fail_request(client, mailer):
    mailer.fail = True
    assert register(client).status_code == 201


def test_register_rejects_short_password(client, session):
    resp = register(client, password="12345")
    assert resp.status_code == 400
    assert "at least 6" in resp.json()["message"]
    assert count_users(session) == 0


def test_register_rejects_malformed_email(client):
    resp = register(client, email="not-an-email")
    assert resp.status_code == 400
    assert resp.json()["data"]["errors"]


# ----- Login -----


def test_login_by_email_and_by_phone(make_client):
    register(make_client())

    resp = make_client().post(
        f"{API}/login", json={"identifier": "ASHA@example.com", "password": "secret1"}
    )
    assert resp.status_code == 200
    assert resp.cookies.get("accessToken")

    resp = make_client().post(
        f"{API}/login", json={"phone": "+91 98765 43210", "password": "secret1"}
    )
    assert resp.status_code == 200


def test_login_rejects_short_phone(client):
    resp = client.post(f"{API}/login", json={"identifier": "12345", "password": "secret1"})
    assert resp.status_code == 400


def test_each_login_rotates_refresh_fingerprint(make_client, session):
    register(make_client())
    before = fetch_user(session, "asha@example.com").refresh_token_hash

    resp = make_client().post(
        f"{API}/login", json={"email": "asha@example.com", "password": "secret1"}
    )
    assert resp.status_code == 200
    user = fetch_user(session, "asha@example.com")
    assert user.refresh_token_hash != before
    assert user.refresh_token_hash == hash_token(resp.cookies["refreshToken"])
    assert user.login_count == 2
    assert user.last_login is not None


def test_wrong_password_three_times(client, session):
    register(client)
    count_before = fetch_user(session, "asha@example.com").login_count

    responses = [
        client.post(f"{API}/login", json={"email": "asha@example.com", "password": "nope!!"})
        for _ in range(3)
    ]
    assert {r.status_code for r in responses} == {401}
    assert len({r.json()["message"] for r in responses}) == 1
    assert responses[0].json()["message"] == "Invalid credentials"
    assert fetch_user(session, "asha@example.com").login_count == count_before


def test_unknown_account_and_wrong_password_look_the_same(client):
    register(client)
    unknown = client.post(f"{API}/login", json={"email": "nobody@example.com", "password": "x"})
    wrong = client.post(f"{API}/login", json={"email": "asha@example.com", "password": "x"})
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json()


def test_login_deactivated_account(client, session):
    create_user(session, email="off@example.com", password="secret1", is_active=False)
    resp = client.post(f"{API}/login", json={"email": "off@example.com", "password": "secret1"})
    assert resp.status_code == 403


def test_customer_login_does_not_match_admin_accounts(client, admin):
    resp = client.post(f"{API}/login", json={"email": admin.email, "password": ADMIN_PASSWORD})
    assert resp.status_code == 401


# ----- Refresh / logout -----


def test_refresh_rotates_and_old_refresh_token_is_rejected(client, make_client):
    register(client)
    old_refresh = client.cookies.get("refreshToken")
    old_access = client.cookies.get("accessToken")

    resp = client.post(f"{API}/refresh")
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["access_token"] != old_access
    assert client.get(f"{API}/me").status_code == 200

    replay = make_client().post(f"{API}/refresh", headers={"Cookie": f"refreshToken={old_refresh}"})
    assert replay.status_code == 401

    stale = make_client().get(f"{API}/me", headers={"Authorization": f"Bearer {old_access}"})
    assert stale.status_code == 401
    assert stale.json()["data"]["code"] == "session_revoked"


def test_refresh_without_cookie(client):
    resp = client.post(f"{API}/refresh")
    assert resp.status_code == 401
    assert resp.json()["message"] == "Refresh token not found"


def test_refresh_with_access_token_is_rejected(client, make_client):
    register(client)
    access = client.cookies.get("accessToken")
    resp = make_client().post(f"{API}/refresh", headers={"Cookie": f"refreshToken={access}"})
    assert resp.status_code == 401


def test_logout_revokes_session(client, make_client, session):
    register(client)
    access = client.cookies.get("accessToken")
    refresh = client.cookies.get("refreshToken")

    resp = client.post(f"{API}/logout")
    assert resp.status_code == 200
    assert "accessToken" in resp.headers.get("set-cookie", "")

    user = fetch_user(session, "asha@example.com")
    assert not user.is_logged_in
    assert user.refresh_token_hash is None

    assert make_client().get(
        f"{API}/me", headers={"Authorization": f"Bearer {access}"}
    ).status_code == 401
    assert make_client().post(
        f"{API}/refresh", headers={"Cookie": f"refreshToken={refresh}"}
    ).status_code == 401


def test_logout_without_session_still_succeeds(client):
    resp = client.post(f"{API}/logout")
    assert resp.status_code == 200
    assert resp.json()["success"] is True


def test_logout_with_expired_access_token_revokes_refresh(make_client, session, monkeypatch):
    user = create_user(session, email="ops@example.com", password=ADMIN_PASSWORD, role="admin")
    past = datetime.now(timezone.utc) - timedelta(hours=5)
    tokens = create_token_pair(user.id, user.role, now=past)
    user.access_token_hash = hash_token(tokens.access_token)
    user.refresh_token_hash = hash_token(tokens.refresh_token)
    user.is_logged_in = True
    session.add(user)
    session.commit()

    cleared_for: list[str] = []
    real_clear = auth_router.clear_auth_cookies

    def recording_clear(response, role, settings):
        cleared_for.append(role)
        real_clear(response, role, settings)

    monkeypatch.setattr(auth_router, "clear_auth_cookies", recording_clear)

    cookies = f"accessToken={tokens.access_token}; refreshToken={tokens.refresh_token}"
    resp = make_client().post(f"{API}/logout", headers={"Cookie": cookies})
    assert resp.status_code == 200
    assert cleared_for == ["admin"]

    stored = fetch_user(session, "ops@example.com")
    assert not stored.is_logged_in
    assert stored.refresh_token_hash is None

    resp = make_client().post(
        f"{API}/refresh", headers={"Cookie": f"refreshToken={tokens.refresh_token}"}
    )
    assert resp.status_code == 401


def test_logout_all_revokes_every_device(make_client, session):
    laptop = make_client()
    register(laptop)
    refresh = laptop.cookies.get("refreshToken")

    resp = laptop.post(f"{API}/logout-all")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Logged out from all devices successfully"
    assert not fetch_user(session, "asha@example.com").is_logged_in

    assert make_client().post(
        f"{API}/refresh", headers={"Cookie": f"refreshToken={refresh}"}
    ).status_code == 401
    assert make_client().post(f"{API}/logout-all").status_code == 401


# ----- Forgot / reset password -----


def test_forgot_password_response_does_not_leak_existence(client, mailer):
    register(client)
    mailer.sent.clear()

    known = client.post(f"{API}/forgot-password", json={"email": "asha@example.com"})
    unknown = client.post(f"{API}/forgot-password", json={"email": "ghost@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert len(mailer.sent) == 1
    assert "/reset-password?token=" in mailer.sent[0]["text"]


def test_reset_token_works_once(client, make_client, mailer):
    register(client)
    client.post(f"{API}/forgot-password", json={"email": "asha@example.com"})
    token = mailer.last_link_token()

    payload = {"token": token, "new_password": "brand-new"}
    assert client.post(f"{API}/reset-password", json=payload).status_code == 200

    again = client.post(f"{API}/reset-password", json=payload)
    assert again.status_code == 400
    assert again.json()["message"] == "Invalid or expired token"

    login = make_client().post(
        f"{API}/login", json={"email": "asha@example.com", "password": "brand-new"}
    )
    assert login.status_code == 200


def test_reset_password_revokes_existing_sessions(client, mailer):
    register(client)
    client.post(f"{API}/forgot-password", json={"email": "asha@example.com"})
    client.post(
        f"{API}/reset-password",
        json={"token": mailer.last_link_token(), "new_password": "brand-new"},
    )
    assert client.get(f"{API}/me").status_code == 401


def test_expired_reset_token(client, session, mailer):
    register(client)
    client.post(f"{API}/forgot-password", json={"email": "asha@example.com"})
    token = mailer.last_link_token()

    user = fetch_user(session, "asha@example.com")
    user.password_reset_expires = datetime.now(timezone.utc) - timedelta(minutes=1)
    session.add(user)
    session.commit()

    resp = client.post(f"{API}/reset-password", json={"token": token, "new_password": "brand-new"})
    assert resp.status_code == 400


def test_forgot_password_mail_failure_clears_token(client, session, mailer):
    register(client)
    mailer.fail = True

    resp = client.post(f"{API}/forgot-password", json={"email": "asha@example.com"})
    assert resp.status_code == 500
    assert resp.json()["message"].startswith("Failed to send password reset email")

    user = fetch_user(session, "asha@example.com")
    assert user.password_reset_token_hash is None
    assert user.password_reset_expires is None


# ----- Admin register / verify / login -----


ADMIN_PAYLOAD = {
    "username": "boss",
    "email": "boss@example.com",
    "password": "longenough",
}


def test_admin_must_verify_email_before_login(client, mailer):
    resp = client.post(f"{API}/admin/register", json=ADMIN_PAYLOAD)
    assert resp.status_code == 201
    assert resp.json()["data"]["email_sent"] is True
    assert resp.json()["data"]["user"]["is_email_verified"] is False
    assert "accessToken" not in resp.cookies
    assert "/verify-email?token=" in mailer.sent[-1]["text"]

    creds = {"email": ADMIN_PAYLOAD["email"], "password": ADMIN_PAYLOAD["password"]}
    blocked = client.post(f"{API}/admin/login", json=creds)
    assert blocked.status_code == 403
    assert blocked.json()["message"] == "Please verify your email."

    verified = client.post(f"{API}/verify-email", json={"token": mailer.last_link_token()})
    assert verified.status_code == 200
    assert verified.json()["data"]["is_email_verified"] is True

    ok = client.post(f"{API}/admin/login", json=creds)
    assert ok.status_code == 200
    assert ok.json()["data"]["user"]["role"] == "admin"


def test_unverified_admin_with_wrong_password_gets_401(client):
    client.post(f"{API}/admin/register", json=ADMIN_PAYLOAD)
    resp = client.post(
        f"{API}/admin/login", json={"email": ADMIN_PAYLOAD["email"], "password": "wrong-pass"}
    )
    assert resp.status_code == 401


def test_admin_password_minimum(client):
    resp = client.post(f"{API}/admin/register", json={**ADMIN_PAYLOAD, "password": "seven77"})
    assert resp.status_code == 400
    assert "at least 8" in resp.json()["message"]


def test_admin_register_reports_failed_email(client, session, mailer):
    mailer.fail = True
    resp = client.post(f"{API}/admin/register", json=ADMIN_PAYLOAD)
    assert resp.status_code == 201
    assert resp.json()["data"]["email_sent"] is False
    assert fetch_user(session, ADMIN_PAYLOAD["email"]).role == "admin"


def test_verify_email_rejects_unknown_token(client):
    resp = client.post(f"{API}/verify-email", json={"token": "deadbeef"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid or expired token"


def test_verify_email_rejects_expired_token(client, session):
    create_user(
        session,
        email="late@example.com",
        role="admin",
        is_email_verified=False,
        email_verification_token_hash=hash_token("late-token"),
        email_verification_expires=datetime.now(timezone.utc) - timedelta(minutes=1),
    )
    resp = client.post(f"{API}/verify-email", json={"token": "late-token"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid or expired token"
    assert fetch_user(session, "late@example.com").is_email_verified is False


def test_verify_email_only_applies_to_admin_accounts(client, session):
    create_user(
        session,
        email="shopper@example.com",
        is_email_verified=False,
        email_verification_token_hash=hash_token("shopper-token"),
        email_verification_expires=datetime.now(timezone.utc) + timedelta(hours=1),
    )
    resp = client.post(f"{API}/verify-email", json={"token": "shopper-token"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid or expired token"
    assert fetch_user(session, "shopper@example.com").is_email_verified is False


def test_resend_verification_replaces_token(client, mailer):
    client.post(f"{API}/admin/register", json=ADMIN_PAYLOAD)
    first = mailer.last_link_token()

    resp = client.post(f"{API}/admin/resend-verification", json={"email": ADMIN_PAYLOAD["email"]})
    assert resp.status_code == 200
    second = mailer.last_link_token()
    assert second != first

    assert client.post(f"{API}/verify-email", json={"token": first}).status_code == 400
    assert client.post(f"{API}/verify-email", json={"token": second}).status_code == 200


def test_resend_verification_is_generic_for_unknown_email(client, mailer):
    resp = client.post(f"{API}/admin/resend-verification", json={"email": "ghost@example.com"})
    assert resp.status_code == 200
    assert mailer.sent == []


# ----- Google -----


def test_google_login_creates_verified_customer(client, session, google):
    google.add("cred-1", sub="g-1", email="Priya@Gmail.com", name="Priya Shah")

    resp = client.post(f"{API}/google", json={"credential": "cred-1"})
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]["user"]
    assert data["email"] == "priya@gmail.com"
    assert data["username"] == "priya.shah"
    assert data["auth_provider"] == "google"
    assert data["is_email_verified"] is True
    assert resp.cookies.get("accessToken")

    user = fetch_user(session, "priya@gmail.com")
    assert user.google_id == "g-1"
    assert user.password_hash is None


def test_google_login_links_existing_account(client, session, google):
    register(client)
    google.add("cred-2", sub="g-2", email="asha@example.com", name="Asha", picture="http://p/x.png")

    resp = client.post(f"{API}/google", json={"credential": "cred-2"})
    assert resp.status_code == 200
    user = fetch_user(session, "asha@example.com")
    assert user.google_id == "g-2"
    assert user.picture == "http://p/x.png"
    assert count_users(session) == 1


def test_google_login_rejects_bad_or_unverified_credentials(client, google):
    assert client.post(f"{API}/google", json={"credential": "bogus"}).status_code == 401

    google.add("cred-3", sub="g-3", email="x@example.com", email_verified=False)
    assert client.post(f"{API}/google", json={"credential": "cred-3"}).status_code == 400


def test_google_account_set_password_and_unlink(client, google):
    google.add("cred-4", sub="g-4", email="gina@example.com", name="Gina")
    client.post(f"{API}/google", json={"credential": "cred-4"})

    blocked = client.post(f"{API}/google/unlink")
    assert blocked.status_code == 400

    assert client.post(f"{API}/set-password", json={"password": "secret1"}).status_code == 200
    assert client.post(f"{API}/set-password", json={"password": "secret2"}).status_code == 400

    resp = client.post(f"{API}/google/unlink")
    assert resp.status_code == 200
    assert resp.json()["data"]["auth_provider"] == "local"


def test_google_link_rejects_identity_owned_by_someone_else(make_client, google):
    google.add("cred-5", sub="g-5", email="first@example.com", name="First")
    make_client().post(f"{API}/google", json={"credential": "cred-5"})

    c = make_client()
    register(c)
    resp = c.post(f"{API}/google/link", json={"credential": "cred-5"})
    assert resp.status_code == 400


# ----- Change password -----


def test_change_password(client, make_client):
    register(client)

    wrong = client.post(
        f"{API}/change-password",
        json={"current_password": "nope", "new_password": "another1"},
    )
    assert wrong.status_code == 401

    ok = client.post(
        f"{API}/change-password",
        json={"current_password": "secret1", "new_password": "another1"},
    )
    assert ok.status_code == 200

    login = make_client().post(
        f"{API}/login", json={"email": "asha@example.com", "password": "another1"}
    )
    assert login.status_code == 200


def test_change_password_requires_auth(client):
    resp = client.post(
        f"{API}/change-password",
        json={"current_password": "secret1", "new_password": "another1"},
    )
    assert resp.status_code == 401


def test_staff_login_requires_approval(client, session):
    staff = create_user(
        session,
        email="pack@example.com",
        password="secret1",
        role="packaging",
        is_approved=False,
    )
    creds = {"email": "pack@example.com", "password": "secret1"}

    # Customer login only matches role "user".
    assert client.post(f"{API}/login", json=creds).status_code == 401

    pending = client.post(f"{API}/staff/login", json=creds)
    assert pending.status_code == 403
    assert pending.json()["data"] == {"needs_approval": True}

    staff.is_approved = True
    session.add(staff)
    session.commit()

    ok = client.post(f"{API}/staff/login", json=creds)
    assert ok.status_code == 200
    assert ok.json()["data"]["user"]["role"] == "packaging"


def test_staff_login_rejects_customers(client):
    register(client)
    resp = client.post(
        f"{API}/staff/login", json={"email": "asha@example.com", "password": "secret1"}
    )
    assert resp.status_code == 401


STAFF_PAYLOAD = {
    "username": "ravi",
    "email": "ravi@example.com",
    "password": "deliver-fast",
    "role": "delivery_partner",
    "role_details": {"vehicle_type": "Bike"},
}


def test_staff_register_waits_for_approval(client, session):
    resp = client.post(f"{API}/staff/register", json=STAFF_PAYLOAD)
    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    assert data["needs_approval"] is True
    assert data["user"]["role"] == "delivery_partner"
    assert data["user"]["is_approved"] is False
    assert data["user"]["role_details"] == {"vehicle_type": "bike"}
    assert "accessToken" not in resp.cookies

    pending = client.post(
        f"{API}/staff/login",
        json={"email": STAFF_PAYLOAD["email"], "password": STAFF_PAYLOAD["password"]},
    )
    assert pending.status_code == 403
    assert pending.json()["data"] == {"needs_approval": True}
    assert fetch_user(session, STAFF_PAYLOAD["email"]).is_logged_in is False


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"role_details": {}}, "vehicle_type is required for delivery_partner"),
        ({"role_details": {"vehicle_type": "rocket"}}, "Invalid vehicle_type for delivery_partner"),
        ({"role": "packaging", "role_details": {"vehicle_type": "bike"}}, "shift is required for packaging"),
        ({"role": "editor", "role_details": {"department": "marketing"}}, "Invalid department for editor"),
        ({"password": "short77"}, "at least 8"),
    ],
)
def test_staff_register_checks_role_details(client, session, overrides, message):
    resp = client.post(f"{API}/staff/register", json={**STAFF_PAYLOAD, **overrides})
    assert resp.status_code == 400
    assert message in resp.json()["message"]
    assert count_users(session) == 0


def test_staff_register_cannot_claim_customer_or_admin_roles(client):
    for role in ("user", "admin"):
        resp = client.post(f"{API}/staff/register", json={**STAFF_PAYLOAD, "role": role})
        assert resp.status_code == 400


def test_staff_register_duplicate_email(client):
    register(client, email="ravi@example.com")
    resp = client.post(f"{API}/staff/register", json=STAFF_PAYLOAD)
    assert resp.status_code == 400
    assert resp.json()["message"] == "User already exists."
