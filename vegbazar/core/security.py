# vegbazar/core/security.py
"""Password hashing, one-time tokens, and JWT issue/verify for sessions."""

import hashlib
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from vegbazar.core.config import Settings, get_settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenExpiredError(TokenError):
    """Signature is valid but `exp` is in the past; the client may refresh."""


class TokenInvalidError(TokenError):
    """Bad signature, malformed token, or wrong token kind."""


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_max_age: int
    refresh_max_age: int


# ----- Passwords -----


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    if rounds is None:
        rounds = get_settings().BCRYPT_ROUNDS
    # bcrypt has a 72-byte limit
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash. No hash never matches."""
    if not hashed:
        return False
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# ----- Opaque tokens -----


def generate_random_token() -> str:
    """High-entropy token for password reset / email verification links."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 fingerprint stored in place of a raw token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# ----- JWT -----


def _encode(payload: dict[str, Any], secret: str, settings: Settings) -> str:
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def create_token_pair(
    user_id: uuid.UUID | str,
    role: str,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> TokenPair:
    """
    Issue an access + refresh token for a user.

    Access:  {sub, role, type="access",  jti, iat, exp}  signed with the access secret
    Refresh: {sub,       type="refresh", jti, iat, exp}  signed with the refresh secret

    `jti` makes every pair unique even when issued within the same second,
    so a rotated refresh token never hashes to the previous fingerprint.
    """
    settings = settings or get_settings()
    now = now or datetime.now(timezone.utc)

    access_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    refresh_delta = timedelta(days=settings.refresh_token_days(role))

    access_payload = {
        "sub": str(user_id),
        "role": role,
        "type": ACCESS_TOKEN_TYPE,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int((now + access_delta).timestamp()),
    }
    refresh_payload = {
        "sub": str(user_id),
        "type": REFRESH_TOKEN_TYPE,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int((now + refresh_delta).timestamp()),
    }

    return TokenPair(
        access_token=_encode(
            access_payload, settings.JWT_ACCESS_SECRET.get_secret_value(), settings
        ),
        refresh_token=_encode(
            refresh_payload, settings.JWT_REFRESH_SECRET.get_secret_value(), settings
        ),
        access_max_age=int(access_delta.total_seconds()),
        refresh_max_age=int(refresh_delta.total_seconds()),
    )


def _decode(token: str, secret: str, expected_type: str, settings: Settings) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpiredError("Token has expired") from exc
    except JWTError as exc:
        raise TokenInvalidError("Token is invalid") from exc

    if payload.get("type") != expected_type:
        raise TokenInvalidError("Invalid token type")
    if not payload.get("sub"):
        raise TokenInvalidError("Token missing subject")
    return payload


def decode_access_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """
    Decode and validate an access token.

    Raises:
        TokenExpiredError: valid signature, past `exp`.
        TokenInvalidError: anything else, including a refresh token.
    """
    settings = settings or get_settings()
    return _decode(
        token,
        settings.JWT_ACCESS_SECRET.get_secret_value(),
        ACCESS_TOKEN_TYPE,
        settings,
    )


def decode_refresh_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """Decode and validate a refresh token (see `decode_access_token`)."""
    settings = settings or get_settings()
    return _decode(
        token,
        settings.JWT_REFRESH_SECRET.get_secret_value(),
        REFRESH_TOKEN_TYPE,
        settings,
    )
