import os

# Settings are read once and cached, so the environment must be in place
# before anything from vegbazar is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret-do-not-use-in-production")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-do-not-use-in-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from vegbazar.core.google_identity import GoogleIdentity, GoogleTokenError  # noqa: E402
from vegbazar.core.security import hash_password  # noqa: E402
from vegbazar.database import build_engine, get_session  # noqa: E402
from vegbazar.main import app  # noqa: E402
from vegbazar.models.user import User  # noqa: E402
from vegbazar.routers import auth as auth_router  # noqa: E402

ADMIN_PASSWORD = "admin-pass-123"


class FakeMailer:
    """Records every send; set `fail` to make the next sends raise."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    def __call__(self, to_email, subject, text_body, html_body=None, settings=None):
        if self.fail:
            raise OSError("SMTP connection refused")
        self.sent.append(
            {"to": to_email, "subject": subject, "text": text_body, "html": html_body}
        )

    def last_link_token(self) -> str:
        """Raw token from the `?token=` link of the last email."""
        text = self.sent[-1]["text"]
        return text.split("token=", 1)[1].split()[0]


class FakeGoogleVerifier:
    """Maps credential strings to identities; anything else is rejected."""

    def __init__(self):
        self.identities: dict[str, GoogleIdentity] = {}

    def add(self, credential: str, **claims) -> GoogleIdentity:
        identity = GoogleIdentity(
            sub=claims.get("sub", credential),
            email=claims.get("email"),
            email_verified=claims.get("email_verified", True),
            name=claims.get("name"),
            picture=claims.get("picture"),
        )
        self.identities[credential] = identity
        return identity

    def verify(self, credential: str) -> GoogleIdentity:
        try:
            return self.identities[credential]
        except KeyError:
            raise GoogleTokenError("unknown credential")


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def mailer(monkeypatch):
    fake = FakeMailer()
    monkeypatch.setattr(auth_router.service, "mailer", fake)
    return fake


@pytest.fixture
def google(monkeypatch):
    fake = FakeGoogleVerifier()
    monkeypatch.setattr(auth_router.service, "google_verifier", fake)
    return fake


@pytest.fixture
def make_client(engine, mailer, google):
    """Factory for independent clients (separate cookie jars) on one database."""

    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    clients: list[TestClient] = []

    def factory(**kwargs) -> TestClient:
        c = TestClient(app, **kwargs)
        clients.append(c)
        return c

    yield factory

    for c in clients:
        c.close()
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


def register(client: TestClient, **overrides):
    payload = {
        "username": "asha",
        "email": "asha@example.com",
        "password": "secret1",
        "phone": "+91 98765 43210",
    }
    payload.update(overrides)
    return client.post("/api/v1/auth/register", json=payload)


def create_user(session: Session, **fields) -> User:
    """Insert a user row directly; `password` is hashed for you."""
    password = fields.pop("password", None)
    values = {
        "username": fields.get("email", "user@example.com").split("@")[0],
        "email": "user@example.com",
        "role": "user",
        "is_approved": True,
        "is_email_verified": True,
    }
    values.update(fields)
    if password is not None:
        values["password_hash"] = hash_password(password)
    user = User(**values)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def admin(session) -> User:
    return create_user(
        session,
        username="root",
        email="admin@example.com",
        password=ADMIN_PASSWORD,
        role="admin",
    )


@pytest.fixture
def admin_client(make_client, admin):
    """A client signed in as a verified admin (cookies set)."""
    c = make_client()
    resp = c.post(
        "/api/v1/auth/admin/login",
        json={"email": admin.email, "password": ADMIN_PASSWORD},
    )
    assert resp.status_code == 200, resp.text
    return c
