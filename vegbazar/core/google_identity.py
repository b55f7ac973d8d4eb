# vegbazar/core/google_identity.py
"""Verification of Google Identity Services ID tokens."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any

import httpx
from jose import JWTError, jwt

logger = logging.getLogger(__name__)

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")

# Google rotates keys roughly daily; refetching hourly is plenty.
JWKS_TTL_SECONDS = 3600


class GoogleTokenError(Exception):
    """The credential could not be verified."""


@dataclass(frozen=True)
class GoogleIdentity:
    sub: str
    email: str | None
    email_verified: bool
    name: str | None
    picture: str | None


class GoogleTokenVerifier:
    """
    Verifies an ID token's signature against Google's published JWKS and
    checks audience, issuer and expiry.

    The key set is fetched lazily over HTTPS and cached for JWKS_TTL_SECONDS.
    """

    def __init__(
        self,
        client_id: str | None,
        certs_url: str = GOOGLE_CERTS_URL,
        http_client: httpx.Client | None = None,
    ):
        self.client_id = client_id
        self.certs_url = certs_url
        self._http = http_client
        self._jwks: dict[str, Any] | None = None
        self._fetched_at = 0.0
        self._lock = threading.Lock()

    def _get_jwks(self) -> dict[str, Any]:
        with self._lock:
            if self._jwks is not None and time.monotonic() - self._fetched_at < JWKS_TTL_SECONDS:
                return self._jwks
            try:
                if self._http is not None:
                    resp = self._http.get(self.certs_url, timeout=10.0)
                else:
                    resp = httpx.get(self.certs_url, timeout=10.0)
                resp.raise_for_status()
            except httpx.HTTPError as exc:
                raise GoogleTokenError(f"Could not fetch Google signing keys: {exc}") from exc
            self._jwks = resp.json()
            self._fetched_at = time.monotonic()
            return self._jwks

    def verify(self, credential: str) -> GoogleIdentity:
        if not self.client_id:
            raise GoogleTokenError("GOOGLE_CLIENT_ID is not configured")

        try:
            claims = jwt.decode(
                credential,
                self._get_jwks(),
                algorithms=["RS256"],
                audience=self.client_id,
                options={"verify_at_hash": False},
            )
        except JWTError as exc:
            raise GoogleTokenError(f"Invalid Google ID token: {exc}") from exc

        if claims.get("iss") not in GOOGLE_ISSUERS:
            raise GoogleTokenError("Unexpected token issuer")
        if not claims.get("sub"):
            raise GoogleTokenError("Token missing subject")

        email = claims.get("email")
        return GoogleIdentity(
            sub=str(claims["sub"]),
            email=email.lower() if email else None,
            email_verified=bool(claims.get("email_verified", False)),
            name=claims.get("name"),
            picture=claims.get("picture"),
        )
