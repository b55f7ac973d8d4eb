# vegbazar/core/cookies.py
from typing import Any

from fastapi import Response

from vegbazar.core.config import Settings, get_settings
from vegbazar.core.security import TokenPair

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def cookie_options(role: str, settings: Settings | None = None) -> dict[str, Any]:
    """
    Cookie attributes for a session cookie issued to `role`.

    - Always HttpOnly, path "/".
    - Production: Secure, SameSite=None, domain picked per role
      (falls back to the customer domain for unknown roles).
    - Development: SameSite=Lax, host-only cookie.
    """
    settings = settings or get_settings()
    options: dict[str, Any] = {
        "httponly": True,
        "path": "/",
        "secure": settings.is_production,
        "samesite": "none" if settings.is_production else "lax",
    }
    if settings.is_production:
        options["domain"] = settings.ROLE_COOKIE_DOMAINS.get(
            role, settings.ROLE_COOKIE_DOMAINS.get("user")
        )
    return options


def set_auth_cookies(
    response: Response,
    tokens: TokenPair,
    role: str,
    settings: Settings | None = None,
) -> None:
    options = cookie_options(role, settings)
    response.set_cookie(
        ACCESS_COOKIE,
        tokens.access_token,
        max_age=tokens.access_max_age,
        **options,
    )
    response.set_cookie(
        REFRESH_COOKIE,
        tokens.refresh_token,
        max_age=tokens.refresh_max_age,
        **options,
    )


def clear_auth_cookies(
    response: Response,
    role: str = "user",
    settings: Settings | None = None,
) -> None:
    options = cookie_options(role, settings)
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)
