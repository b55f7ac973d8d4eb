# vegbazar/models/user.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """
    Credential store row for a VegBazar account.

    Identity:
      - email is unique and always stored lowercase
      - username is unique
      - phone is optional, digits only, unique when present

    Secrets:
      - password_hash is a bcrypt hash (None for Google-only accounts)
      - *_token_hash columns hold SHA-256 digests, never raw tokens
      - reset / verification hashes live only until their expiry or
        until they are consumed, whichever comes first
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    username: str = Field(
        max_length=50,
        unique=True,
        index=True,
    )
    email: str = Field(
        max_length=255,
        unique=True,
        index=True,
        description="Lowercased email",
    )
    phone: str | None = Field(
        default=None,
        max_length=20,
        unique=True,
        index=True,
        description="Digits only",
    )
    name: str | None = Field(default=None, max_length=100)

    password_hash: str | None = Field(default=None)

    # user | admin | editor | delivery_partner | packaging
    role: str = Field(default="user", index=True)

    is_active: bool = Field(default=True)
    is_approved: bool = Field(default=True)
    approved_by: uuid.UUID | None = Field(default=None)
    approved_at: datetime | None = Field(default=None)
    rejection_reason: str | None = Field(default=None, max_length=500)

    # Staff details: vehicle_type / shift / department depending on role.
    # Reassign rather than mutate in place; JSON columns don't track mutations.
    role_details: dict[str, str] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    # Delivery partners only
    is_available: bool = Field(default=False)
    current_latitude: float | None = Field(default=None)
    current_longitude: float | None = Field(default=None)

    is_email_verified: bool = Field(default=False)
    email_verified_at: datetime | None = Field(default=None)

    # Session linkage
    is_logged_in: bool = Field(default=False)
    login_count: int = Field(default=0, ge=0)
    last_login: datetime | None = Field(default=None)
    refresh_token_hash: str | None = Field(default=None, index=True)
    access_token_hash: str | None = Field(default=None)

    # One-time tokens
    password_reset_token_hash: str | None = Field(default=None, index=True)
    password_reset_expires: datetime | None = Field(default=None)
    email_verification_token_hash: str | None = Field(default=None, index=True)
    email_verification_expires: datetime | None = Field(default=None)

    # Federated identity
    google_id: str | None = Field(default=None, unique=True, index=True)
    picture: str | None = Field(default=None)
    # local | google
    auth_provider: str = Field(default="local")

    created_at: datetime = Field(
        default_factory=_utcnow,
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        description="Last modification timestamp (UTC)",
    )
