# vegbazar/core/auth.py
import logging
import uuid

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from vegbazar.core.cookies import ACCESS_COOKIE
from vegbazar.core.security import (
    TokenExpiredError,
    TokenInvalidError,
    decode_access_token,
    hash_token,
)
from vegbazar.database import get_session
from vegbazar.models.user import User
from vegbazar.schemas.auth import CurrentUser
from vegbazar.schemas.user import ROLES_REQUIRING_APPROVAL

logger = logging.getLogger(__name__)

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so the cookie can be tried first and guests can pass through.
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(message: str, code: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": message, "code": code},
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_access_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    """Cookie `accessToken` wins over `Authorization: Bearer <token>`."""
    cookie_token = request.cookies.get(ACCESS_COOKIE)
    if cookie_token:
        return cookie_token
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return None


def resolve_session_user(session: Session, token: str) -> User:
    """
    Validate an access token against the credential store.

    Flow:
      1. Verify signature + expiry with the access secret
         (expired and invalid are reported with different codes so the
         client knows whether to call /auth/refresh).
      2. Token kind must be "access" (refresh tokens are rejected).
      3. sha256(token) must equal the user's stored access fingerprint
         and the user must still be logged in; this is what makes
         logout / rotation take effect before `exp`.
      4. Account must be active, and approved if its role needs approval.

    Raises:
        HTTPException(401): unauthenticated / expired / invalid / revoked.
        HTTPException(403): deactivated or pending approval.
    """
    try:
        payload = decode_access_token(token)
    except TokenExpiredError:
        raise _unauthorized("Session expired. Please login again.", "token_expired")
    except TokenInvalidError:
        raise _unauthorized("Invalid authentication token", "token_invalid")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (TypeError, ValueError):
        raise _unauthorized("Invalid authentication token", "token_invalid")

    user = session.get(User, user_id)
    if (
        user is None
        or not user.is_logged_in
        or user.access_token_hash != hash_token(token)
    ):
        raise _unauthorized("Session is no longer valid. Please login again.", "session_revoked")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated. Please contact support.",
        )

    if user.role in ROLES_REQUIRING_APPROVAL and not user.is_approved:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account is pending approval",
        )

    return user


def _authenticate(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
    session: Session,
) -> CurrentUser:
    token = extract_access_token(request, credentials)
    if not token:
        raise _unauthorized("Authentication required", "token_missing")

    user = resolve_session_user(session, token)
    current = CurrentUser.model_validate(user)
    request.state.user = current
    return current


def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> CurrentUser | None:
    """
    Non-blocking variant: same checks as `require_auth`, but any failure
    yields None (guest) instead of an error.

    Use for endpoints that behave differently for anonymous callers.
    """
    try:
        return _authenticate(request, credentials, session)
    except HTTPException as exc:
        logger.debug("Proceeding as guest: %s", exc.detail)
        return None


def require_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> CurrentUser:
    """
    Enforce authentication.

    Returns:
        The authenticated identity (also stored on `request.state.user`).

    Raises:
        HTTPException(401/403): see `resolve_session_user`.
    """
    return _authenticate(request, credentials, session)


def require_roles(*roles: str):
    """
    Build a dependency that only lets the given roles through.

    Usage:
        @router.get("/x", dependencies=[Depends(require_roles("admin", "editor"))])
    """
    allowed = frozenset(roles)

    def dependency(user: CurrentUser = Depends(require_auth)) -> CurrentUser:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied",
            )
        return user

    return dependency


# Admin-only routes
require_admin = require_roles("admin")

# Customer-only routes (role='user')
require_customer = require_roles("user")
