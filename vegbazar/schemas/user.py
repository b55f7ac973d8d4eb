# vegbazar/schemas/user.py
import re
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

# App-level roles. "guest" = no token, so we don't store it here.
Role = Literal["user", "admin", "editor", "delivery_partner", "packaging"]

# Staff roles that must be approved by an admin before they can sign in.
ROLES_REQUIRING_APPROVAL: frozenset[str] = frozenset(
    {"editor", "delivery_partner", "packaging"}
)
StaffRole = Literal["editor", "delivery_partner", "packaging"]

# Required role_details key per staff role, with its allowed values.
ROLE_DETAIL_RULES: dict[str, tuple[str, frozenset[str]]] = {
    "delivery_partner": ("vehicle_type", frozenset({"bike", "car", "van", "truck"})),
    "packaging": ("shift", frozenset({"morning", "afternoon", "evening", "night"})),
    "editor": ("department", frozenset({"content", "product", "inventory", "orders"})),
}

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,50}$")


def normalize_phone(raw: str) -> str:
    """Strip everything but digits ("+91 98765-43210" -> "919876543210")."""
    return re.sub(r"\D", "", raw)


class UserRead(SQLModel):
    """
    Public profile returned to clients.

    Never includes password or token hashes.
    """

    id: uuid.UUID
    username: str
    email: str
    phone: str | None = None
    name: str | None = None
    role: Role
    is_active: bool
    is_approved: bool
    is_email_verified: bool
    picture: str | None = None
    auth_provider: str
    login_count: int
    last_login: datetime | None = None
    role_details: dict[str, str] = Field(default_factory=dict)
    created_at: datetime


class UserAdminRead(UserRead):
    """Admin view: adds session / approval bookkeeping."""

    is_logged_in: bool
    approved_by: uuid.UUID | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    is_available: bool = False
    google_id: str | None = None
    updated_at: datetime


class UserUpdate(SQLModel):
    """
    Partial profile update for authenticated users.
    Email and role are not editable here.
    """

    model_config = ConfigDict(extra="forbid")

    username: str | None = Field(default=None, max_length=50)
    name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=20)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not USERNAME_PATTERN.match(v):
            raise ValueError(
                "username must be 3-50 characters: letters, digits, '_', '.', '-'"
            )
        return v

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        if v is None:
            return v
        digits = normalize_phone(v)
        if not digits:
            raise ValueError("phone must contain digits")
        return digits


class UserRoleUpdate(SQLModel):
    """
    Admin-only role update schema.
    """

    model_config = ConfigDict(extra="forbid")
    role: Role


class UserStatusUpdate(SQLModel):
    """Admin payload to activate / deactivate an account."""

    model_config = ConfigDict(extra="forbid")
    is_active: bool


class UserApprovalUpdate(SQLModel):
    """Admin payload to approve / reject a staff account."""

    model_config = ConfigDict(extra="forbid")
    approved: bool
    rejection_reason: str | None = Field(default=None, max_length=500)

    @field_validator("rejection_reason")
    @classmethod
    def blank_reason_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.strip() or None


class AvailabilityUpdate(SQLModel):
    """
    Delivery partner availability.

    Coordinates are optional but must come as a pair.
    """

    model_config = ConfigDict(extra="forbid")

    is_available: bool | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)

    @model_validator(mode="after")
    def coordinates_come_in_pairs(self) -> "AvailabilityUpdate":
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be sent together")
        if self.is_available is None and self.latitude is None:
            raise ValueError("Nothing to update")
        return self


class AvailabilityRead(SQLModel):
    id: uuid.UUID
    is_available: bool
    current_latitude: float | None = None
    current_longitude: float | None = None
