# vegbazar/schemas/auth.py
import uuid
from typing import Any

from pydantic import ConfigDict, EmailStr, field_validator, model_validator
from sqlmodel import SQLModel, Field

from vegbazar.schemas.user import USERNAME_PATTERN, StaffRole, UserRead, normalize_phone


def _lower_email(v: str) -> str:
    return v.strip().lower()


class RegisterRequest(SQLModel):
    """
    Self-serve customer registration.

    Password length is checked by the service (the minimum is configurable
    and differs for admins).
    """

    model_config = ConfigDict(extra="forbid")

    username: str = Field(max_length=50)
    email: EmailStr
    password: str = Field(max_length=128)
    phone: str | None = Field(default=None, max_length=20)
    name: str | None = Field(default=None, max_length=100)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not USERNAME_PATTERN.match(v):
            raise ValueError(
                "username must be 3-50 characters: letters, digits, '_', '.', '-'"
            )
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _lower_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        if v is None:
            return v
        digits = normalize_phone(v)
        return digits or None


class StaffRegisterRequest(RegisterRequest):
    """
    Staff sign-up. The account waits for admin approval.

    `role_details` must carry the key the role needs
    (see `ROLE_DETAIL_RULES`); the service checks it.
    """

    role: StaffRole
    role_details: dict[str, str] = Field(default_factory=dict)


class LoginRequest(SQLModel):
    """
    Customer login.

    `identifier` is either an email or a phone number; clients may also
    send it as `email` or `phone`.
    """

    identifier: str = Field(max_length=255)
    password: str = Field(max_length=128)

    @model_validator(mode="before")
    @classmethod
    def accept_email_or_phone_key(cls, data: Any) -> Any:
        if isinstance(data, dict) and "identifier" not in data:
            data = dict(data)
            data["identifier"] = data.pop("email", None) or data.pop("phone", None)
        return data

    @field_validator("identifier")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("identifier cannot be empty")
        return v


class AdminLoginRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _lower_email(v)


class GoogleAuthRequest(SQLModel):
    """ID token (JWT) obtained by the frontend from Google Identity Services."""

    credential: str = Field(min_length=1)


class EmailRequest(SQLModel):
    """Payload for forgot-password and resend-verification."""

    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _lower_email(v)


class ResetPasswordRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    token: str = Field(min_length=1, max_length=256)
    new_password: str = Field(max_length=128)


class VerifyEmailRequest(SQLModel):
    token: str = Field(min_length=1, max_length=256)


class ChangePasswordRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(max_length=128)


class SetPasswordRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    password: str = Field(max_length=128)


# ----- Response payloads (inside ApiResponse.data) -----


class AuthPayload(SQLModel):
    """Returned by register / login flows. Tokens are also set as cookies."""

    user: UserRead
    access_token: str


class AdminRegisterPayload(SQLModel):
    user: UserRead
    email_sent: bool


class StaffRegisterPayload(SQLModel):
    user: UserRead
    needs_approval: bool


class RefreshPayload(SQLModel):
    access_token: str


class CurrentUser(SQLModel):
    """Authenticated identity attached to the request by the session dependencies."""

    id: uuid.UUID
    email: str
    username: str
    role: str
    is_approved: bool
    is_active: bool
