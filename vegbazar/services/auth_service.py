# vegbazar/services/auth_service.py
import logging
import re
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from vegbazar.core.config import Settings, get_settings
from vegbazar.core.email_client import MAIL_ERRORS, send_email
from vegbazar.core.email_templates import (
    password_reset_email,
    verification_email,
    welcome_email,
)
from vegbazar.core.google_identity import (
    GoogleIdentity,
    GoogleTokenError,
    GoogleTokenVerifier,
)
from vegbazar.core.security import (
    TokenError,
    TokenPair,
    create_token_pair,
    decode_refresh_token,
    generate_random_token,
    hash_password,
    hash_token,
    verify_password,
)
from vegbazar.models.user import User
from vegbazar.repositories.user_repo import UserRepository
from vegbazar.schemas.auth import (
    AdminLoginRequest,
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    StaffRegisterRequest,
)
from vegbazar.schemas.user import (
    ROLE_DETAIL_RULES,
    ROLES_REQUIRING_APPROVAL,
    normalize_phone,
)

logger = logging.getLogger(__name__)

Mailer = Callable[..., None]

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_OR_EXPIRED_TOKEN = "Invalid or expired token"
FORGOT_PASSWORD_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent."
)
RESEND_VERIFICATION_MESSAGE = (
    "If an unverified admin account exists for that email, "
    "a new verification link has been sent."
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


class AuthService:
    """
    Business logic for every authentication flow.

    Responsibilities:
      - registration (customer + admin) and uniqueness rules
      - credential checks (password, Google ID token)
      - token-pair issuance and fingerprint persistence
      - one-time tokens for password reset and email verification
      - transactional email (welcome, reset, verification)

    Raw tokens never reach the repository; only their SHA-256 hashes do.
    """

    def __init__(
        self,
        repo: UserRepository,
        mailer: Mailer = send_email,
        google_verifier: GoogleTokenVerifier | None = None,
        settings: Settings | None = None,
    ):
        self.repo = repo
        self.mailer = mailer
        self.settings = settings or get_settings()
        self.google_verifier = google_verifier or GoogleTokenVerifier(
            self.settings.GOOGLE_CLIENT_ID
        )

    # ----- Helpers -----

    def _check_password_length(self, password: str, role: str) -> None:
        min_length = self.settings.password_min_length(role)
        if len(password) < min_length:
            raise _bad_request(f"Password must be at least {min_length} characters long")

    def _ensure_unique_identity(
        self,
        session: Session,
        email: str,
        username: str,
        phone: str | None,
    ) -> None:
        if self.repo.get_by_email(session, email) is not None:
            raise _bad_request("User already exists.")
        if self.repo.get_by_username(session, username) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Username already taken.",
            )
        if phone and self.repo.get_by_phone(session, phone) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Phone number already registered.",
            )

    def _create_user(self, session: Session, user: User) -> User:
        """Insert, mapping a unique-index race to 409."""
        try:
            return self.repo.create(session, user)
        except IntegrityError:
            session.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User already exists.",
            )

    @staticmethod
    def _check_account_status(user: User) -> None:
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Your account has been deactivated. Please contact support.",
            )
        if user.role in ROLES_REQUIRING_APPROVAL and not user.is_approved:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "message": "Your account is pending approval. Please wait for admin approval.",
                    "needs_approval": True,
                },
            )

    def _start_session(self, session: Session, user: User) -> TokenPair:
        """Issue a new pair and record the login (fingerprints + counter)."""
        tokens = create_token_pair(user.id, user.role, self.settings)
        self.repo.record_login(
            session,
            user,
            refresh_hash=hash_token(tokens.refresh_token),
            access_hash=hash_token(tokens.access_token),
        )
        logger.info("User %s signed in (role=%s)", user.id, user.role)
        return tokens

    def _load_user(self, session: Session, current: CurrentUser) -> User:
        user = self.repo.get_by_id(session, current.id)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user

    def classify_identifier(self, identifier: str) -> tuple[str, str]:
        """
        Decide whether a login identifier is an email or a phone number.

        Returns:
            ("email", lowercased email) or ("phone", digits only)
        """
        if "@" in identifier:
            return "email", identifier.strip().lower()
        digits = normalize_phone(identifier)
        if len(digits) < self.settings.PHONE_MIN_DIGITS:
            raise _bad_request("Please provide a valid email or phone number")
        return "phone", digits

    def _unique_username(self, session: Session, raw: str) -> str:
        """
        Derive a valid, unused username from a display name or email:
        "Asha Patel" -> "asha.patel", then "asha.patel2", "asha.patel3", ...
        """
        base = re.sub(r"[^a-z0-9_.-]+", ".", raw.strip().lower()).strip(".-_")
        base = (base or "user")[:40]
        if len(base) < 3:
            base = f"{base}user"
        candidate = base
        i = 2
        while self.repo.get_by_username(session, candidate) is not None:
            candidate = f"{base}{i}"
            i += 1
        return candidate

    def _verify_google(self, credential: str) -> GoogleIdentity:
        if not self.settings.GOOGLE_CLIENT_ID:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Google sign-in is not configured",
            )
        try:
            return self.google_verifier.verify(credential)
        except GoogleTokenError as exc:
            logger.warning("Google credential rejected: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid Google credential",
            )

    # ----- Registration -----

    def register(self, session: Session, payload: RegisterRequest) -> tuple[User, TokenPair]:
        """
        Self-serve customer registration.

        The account is created approved and verified with role "user",
        and signed in immediately. The welcome email is the caller's
        job (scheduled as a background task).
        """
        self._check_password_length(payload.password, "user")
        self._ensure_unique_identity(session, payload.email, payload.username, payload.phone)

        user = User(
            username=payload.username,
            email=payload.email,
            phone=payload.phone,
            name=payload.name,
            password_hash=hash_password(payload.password, self.settings.BCRYPT_ROUNDS),
            role="user",
            is_approved=True,
            is_email_verified=True,
            email_verified_at=_now(),
        )
        user = self._create_user(session, user)
        tokens = self._start_session(session, user)
        return user, tokens

    def admin_register(self, session: Session, payload: RegisterRequest) -> tuple[User, bool]:
        """
        Create an unverified admin and email a verification link.

        Returns:
            (user, email_sent). A failed send still leaves the account in
            place; the admin can ask for a new link later.
        """
        self._check_password_length(payload.password, "admin")
        self._ensure_unique_identity(session, payload.email, payload.username, payload.phone)

        raw_token = generate_random_token()
        user = User(
            username=payload.username,
            email=payload.email,
            phone=payload.phone,
            name=payload.name,
            password_hash=hash_password(payload.password, self.settings.BCRYPT_ROUNDS),
            role="admin",
            is_approved=True,
            is_email_verified=False,
            email_verification_token_hash=hash_token(raw_token),
            email_verification_expires=_now()
            + timedelta(hours=self.settings.EMAIL_VERIFICATION_EXPIRE_HOURS),
        )
        user = self._create_user(session, user)
        return user, self._send_verification(user, raw_token)

    @staticmethod
    def _check_role_details(role: str, details: dict[str, str]) -> dict[str, str]:
        """Keep only the detail the role needs, after checking its value."""
        key, allowed = ROLE_DETAIL_RULES[role]
        value = (details.get(key) or "").strip().lower()
        if not value:
            raise _bad_request(f"{key} is required for {role}")
        if value not in allowed:
            raise _bad_request(f"Invalid {key} for {role}")
        return {key: value}

    def staff_register(self, session: Session, payload: StaffRegisterRequest) -> User:
        """
        Sign-up for editors, delivery partners and packaging staff.

        The account is created unapproved and is not signed in; an admin
        approves it through the user-management endpoints first.
        """
        self._check_password_length(payload.password, payload.role)
        role_details = self._check_role_details(payload.role, payload.role_details)
        self._ensure_unique_identity(session, payload.email, payload.username, payload.phone)

        user = User(
            username=payload.username,
            email=payload.email,
            phone=payload.phone,
            name=payload.name,
            password_hash=hash_password(payload.password, self.settings.BCRYPT_ROUNDS),
            role=payload.role,
            role_details=role_details,
            is_approved=False,
            is_email_verified=False,
        )
        user = self._create_user(session, user)
        logger.info("Staff registration %s (role=%s) awaiting approval", user.id, user.role)
        return user

    def _send_verification(self, user: User, raw_token: str) -> bool:
        url = f"{self.settings.FRONTEND_ADMIN_URL.rstrip('/')}/verify-email?token={raw_token}"
        content = verification_email(
            user.username, url, self.settings.EMAIL_VERIFICATION_EXPIRE_HOURS
        )
        try:
            self.mailer(user.email, content.subject, content.text, content.html)
        except MAIL_ERRORS as exc:
            logger.warning("Verification email to user %s failed: %s", user.id, exc)
            return False
        return True

    def send_welcome_email(self, email: str, username: str) -> None:
        """Fire-and-forget: runs after the response, failures are only logged."""
        content = welcome_email(username)
        try:
            self.mailer(email, content.subject, content.text, content.html)
        except Exception:  # noqa: BLE001
            logger.exception("Welcome email failed for %s", username)

    # ----- Login -----

    def login(self, session: Session, payload: LoginRequest) -> tuple[User, TokenPair]:
        """
        Customer login with an email or phone number.

        Unknown account and wrong password produce the same 401.
        """
        kind, value = self.classify_identifier(payload.identifier)
        if kind == "email":
            user = self.repo.get_by_email(session, value, role="user")
        else:
            user = self.repo.get_by_phone(session, value, role="user")

        if user is None:
            logger.info("Login failed: unknown %s", kind)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=INVALID_CREDENTIALS,
            )

        self._check_account_status(user)

        if not verify_password(payload.password, user.password_hash):
            logger.info("Login failed: bad password for user %s", user.id)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=INVALID_CREDENTIALS,
            )

        return user, self._start_session(session, user)

    def admin_login(self, session: Session, payload: AdminLoginRequest) -> tuple[User, TokenPair]:
        """
        Admin login by email. Same rules as `login`, plus the email must
        be verified (checked only after the password is correct).
        """
        user = self.repo.get_by_email(session, payload.email, role="admin")
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=INVALID_CREDENTIALS,
            )

        self._check_account_status(user)

        if not verify_password(payload.password, user.password_hash):
            logger.info("Admin login failed: bad password for user %s", user.id)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=INVALID_CREDENTIALS,
            )

        if not user.is_email_verified:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Please verify your email.",
            )

        return user, self._start_session(session, user)

    def staff_login(self, session: Session, payload: AdminLoginRequest) -> tuple[User, TokenPair]:
        """
        Email login for staff roles (editor, delivery_partner, packaging).

        Approval is checked before the password so a pending account
        learns why it cannot sign in.
        """
        user = self.repo.get_by_email(session, payload.email)
        if user is None or user.role not in ROLES_REQUIRING_APPROVAL:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=INVALID_CREDENTIALS,
            )

        self._check_account_status(user)

        if not verify_password(payload.password, user.password_hash):
            logger.info("Staff login failed: bad password for user %s", user.id)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=INVALID_CREDENTIALS,
            )

        return user, self._start_session(session, user)

    def google_login(self, session: Session, credential: str) -> tuple[User, TokenPair]:
        """
        Sign in (or sign up) with a Google ID token.

        - Existing account (same google_id, or same email): link it and
          mark the email verified.
        - Otherwise: create an approved, verified customer.
        """
        identity = self._verify_google(credential)
        if not identity.email:
            raise _bad_request("Email not provided by Google")
        if not identity.email_verified:
            raise _bad_request("Google email is not verified")

        user = self.repo.get_by_google_id_or_email(session, identity.sub, identity.email)
        if user is not None:
            if user.google_id is None:
                user.google_id = identity.sub
            user.picture = identity.picture or user.picture
            if not user.is_email_verified:
                user.is_email_verified = True
                user.email_verified_at = _now()
            user = self.repo.update(session, user)
            self._check_account_status(user)
        else:
            user = User(
                username=self._unique_username(
                    session, identity.name or identity.email.split("@", 1)[0]
                ),
                email=identity.email,
                name=identity.name,
                google_id=identity.sub,
                picture=identity.picture,
                auth_provider="google",
                role="user",
                is_approved=True,
                is_email_verified=True,
                email_verified_at=_now(),
            )
            user = self._create_user(session, user)
            logger.info("Created user %s from Google sign-in", user.id)

        return user, self._start_session(session, user)

    # ----- Session lifecycle -----

    def refresh(self, session: Session, refresh_token: str | None) -> tuple[User, TokenPair]:
        """
        Rotate the token pair.

        The presented refresh token must match the stored fingerprint;
        the fingerprint is then overwritten, so a replayed (old) refresh
        token is rejected.
        """
        if not refresh_token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Refresh token not found",
            )

        try:
            payload = decode_refresh_token(refresh_token, self.settings)
        except TokenError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token",
            )

        try:
            user_id = uuid_from_sub(payload["sub"])
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token",
            )

        user = self.repo.get_logged_in_by_refresh_hash(
            session, user_id, hash_token(refresh_token)
        )
        if user is None:
            logger.warning("Rejected refresh token for user %s (not current)", user_id)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token",
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is deactivated",
            )

        tokens = create_token_pair(user.id, user.role, self.settings)
        self.repo.rotate_tokens(
            session,
            user,
            refresh_hash=hash_token(tokens.refresh_token),
            access_hash=hash_token(tokens.access_token),
        )
        return user, tokens

    def logout(
        self,
        session: Session,
        current: CurrentUser | None,
        refresh_token: str | None = None,
    ) -> str | None:
        """
        Revoke the caller's session.

        The access identity is tried first. When it does not resolve
        (typically an expired access token), the refresh cookie is used
        to find the session instead, so a logout always kills the refresh
        token that is still alive.

        Returns:
            The role of the signed-out user (for cookie scoping), or None
            when no session could be found.
        """
        if current is not None:
            self.repo.clear_session(session, current.id)
            logger.info("User %s logged out", current.id)
            return current.role

        user = self._user_from_refresh_token(session, refresh_token)
        if user is None:
            return None
        self.repo.clear_session(session, user.id)
        logger.info("User %s logged out (refresh token)", user.id)
        return user.role

    def logout_all(self, session: Session, current: CurrentUser) -> None:
        """Revoke every token issued to the user, whichever device holds it."""
        self.repo.clear_session(session, current.id)
        logger.info("User %s logged out from all devices", current.id)

    def _user_from_refresh_token(self, session: Session, refresh_token: str | None) -> User | None:
        if not refresh_token:
            return None
        try:
            payload = decode_refresh_token(refresh_token, self.settings)
            user_id = uuid_from_sub(payload["sub"])
        except (TokenError, ValueError):
            return None
        return self.repo.get_logged_in_by_refresh_hash(
            session, user_id, hash_token(refresh_token)
        )

    # ----- Password reset -----

    def forgot_password(self, session: Session, email: str) -> str:
        """
        Start a password reset.

        Always returns the same message whether or not the email is known.
        If the email cannot be sent, the token is cleared again and a 500
        is raised.
        """
        user = self.repo.get_by_email(session, email)
        if user is None:
            return FORGOT_PASSWORD_MESSAGE

        raw_token = generate_random_token()
        user.password_reset_token_hash = hash_token(raw_token)
        user.password_reset_expires = _now() + timedelta(
            hours=self.settings.PASSWORD_RESET_EXPIRE_HOURS
        )
        user = self.repo.update(session, user)

        base_url = (
            self.settings.FRONTEND_ADMIN_URL if user.role == "admin" else self.settings.FRONTEND_URL
        )
        reset_url = f"{base_url.rstrip('/')}/reset-password?token={raw_token}"
        content = password_reset_email(
            user.username, reset_url, self.settings.PASSWORD_RESET_EXPIRE_HOURS
        )
        try:
            self.mailer(user.email, content.subject, content.text, content.html)
        except MAIL_ERRORS as exc:
            logger.error("Password reset email for user %s failed: %s", user.id, exc)
            user.password_reset_token_hash = None
            user.password_reset_expires = None
            self.repo.update(session, user)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to send password reset email. Please try again later.",
            )

        return FORGOT_PASSWORD_MESSAGE

    def reset_password(self, session: Session, payload: ResetPasswordRequest) -> None:
        """
        Consume a reset token and set a new password.

        Not found, expired and already used all fail the same way. A
        successful reset also signs the user out everywhere.
        """
        self._check_password_length(payload.new_password, "user")

        user = self.repo.get_by_valid_reset_token(session, hash_token(payload.token), _now())
        if user is None:
            raise _bad_request(INVALID_OR_EXPIRED_TOKEN)

        self._check_password_length(payload.new_password, user.role)

        user.password_hash = hash_password(payload.new_password, self.settings.BCRYPT_ROUNDS)
        user.password_reset_token_hash = None
        user.password_reset_expires = None
        user.refresh_token_hash = None
        user.access_token_hash = None
        user.is_logged_in = False
        self.repo.update(session, user)
        logger.info("Password reset completed for user %s", user.id)

    # ----- Email verification -----

    def verify_email(self, session: Session, token: str) -> User:
        user = self.repo.get_by_valid_verification_token(
            session, hash_token(token), _now(), role="admin"
        )
        if user is None:
            raise _bad_request(INVALID_OR_EXPIRED_TOKEN)

        user.is_email_verified = True
        user.email_verified_at = _now()
        user.email_verification_token_hash = None
        user.email_verification_expires = None
        return self.repo.update(session, user)

    def resend_verification(self, session: Session, email: str) -> str:
        user = self.repo.get_by_email(session, email, role="admin")
        if user is None or user.is_email_verified:
            return RESEND_VERIFICATION_MESSAGE

        raw_token = generate_random_token()
        user.email_verification_token_hash = hash_token(raw_token)
        user.email_verification_expires = _now() + timedelta(
            hours=self.settings.EMAIL_VERIFICATION_EXPIRE_HOURS
        )
        user = self.repo.update(session, user)
        self._send_verification(user, raw_token)
        return RESEND_VERIFICATION_MESSAGE

    # ----- Authenticated account operations -----

    def change_password(
        self,
        session: Session,
        current: CurrentUser,
        payload: ChangePasswordRequest,
    ) -> None:
        user = self._load_user(session, current)
        if not user.password_hash:
            raise _bad_request(
                "No password set for this account. Please set a password first."
            )
        if not verify_password(payload.current_password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Current password is incorrect",
            )
        self._check_password_length(payload.new_password, user.role)

        user.password_hash = hash_password(payload.new_password, self.settings.BCRYPT_ROUNDS)
        self.repo.update(session, user)

    def set_password(self, session: Session, current: CurrentUser, password: str) -> None:
        """First password for an account created through Google sign-in."""
        user = self._load_user(session, current)
        if user.password_hash:
            raise _bad_request("Password already set. Use change password instead.")
        self._check_password_length(password, user.role)

        user.password_hash = hash_password(password, self.settings.BCRYPT_ROUNDS)
        user.auth_provider = "local"
        self.repo.update(session, user)

    def link_google(self, session: Session, current: CurrentUser, credential: str) -> User:
        identity = self._verify_google(credential)
        owner = self.repo.get_by_google_id(session, identity.sub)
        if owner is not None and owner.id != current.id:
            raise _bad_request("This Google account is already linked to another user")

        user = self._load_user(session, current)
        user.google_id = identity.sub
        user.picture = identity.picture or user.picture
        if not user.is_email_verified:
            user.is_email_verified = True
            user.email_verified_at = _now()
        return self.repo.update(session, user)

    def unlink_google(self, session: Session, current: CurrentUser) -> User:
        user = self._load_user(session, current)
        if not user.password_hash:
            raise _bad_request(
                "Cannot unlink Google account. Please set a password first "
                "to avoid losing access to your account."
            )
        user.google_id = None
        user.auth_provider = "local"
        return self.repo.update(session, user)


def uuid_from_sub(sub: str) -> uuid.UUID:
    """Parse a token subject into a UUID (ValueError when malformed)."""
    return uuid.UUID(str(sub))
