# vegbazar/repositories/user_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, func, or_, update
from sqlmodel import Session, select

from vegbazar.models.address import Address
from vegbazar.models.user import User


class UserRepository:
    """
    Data access layer for User.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - Token-hash lookups used by the auth flows
      - Atomic session-linkage updates (single UPDATE statements)
      - No FastAPI, no HTTP, no business logic
    """

    # ----- Lookups -----

    def get_by_id(self, session: Session, user_id: uuid.UUID) -> User | None:
        """Return a User by primary key, or None if not found."""
        return session.get(User, user_id)

    def get_by_email(
        self,
        session: Session,
        email: str,
        role: str | None = None,
    ) -> User | None:
        """Return a User by (case-insensitive) email, optionally scoped to a role."""
        stmt = select(User).where(User.email == email.strip().lower())
        if role is not None:
            stmt = stmt.where(User.role == role)
        return session.exec(stmt).first()

    def get_by_phone(
        self,
        session: Session,
        phone: str,
        role: str | None = None,
    ) -> User | None:
        stmt = select(User).where(User.phone == phone)
        if role is not None:
            stmt = stmt.where(User.role == role)
        return session.exec(stmt).first()

    def get_by_username(self, session: Session, username: str) -> User | None:
        stmt = select(User).where(User.username == username)
        return session.exec(stmt).first()

    def get_by_google_id(self, session: Session, google_id: str) -> User | None:
        stmt = select(User).where(User.google_id == google_id)
        return session.exec(stmt).first()

    def get_by_google_id_or_email(
        self,
        session: Session,
        google_id: str,
        email: str,
    ) -> User | None:
        stmt = select(User).where(
            or_(User.google_id == google_id, User.email == email.strip().lower())
        )
        return session.exec(stmt).first()

    def get_by_valid_reset_token(
        self,
        session: Session,
        token_hash: str,
        now: datetime,
    ) -> User | None:
        """Match on the stored reset hash AND an expiry still in the future."""
        stmt = select(User).where(
            User.password_reset_token_hash == token_hash,
            User.password_reset_expires > now,
        )
        return session.exec(stmt).first()

    def get_by_valid_verification_token(
        self,
        session: Session,
        token_hash: str,
        now: datetime,
        role: str,
    ) -> User | None:
        stmt = select(User).where(
            User.email_verification_token_hash == token_hash,
            User.email_verification_expires > now,
            User.role == role,
        )
        return session.exec(stmt).first()

    def get_logged_in_by_refresh_hash(
        self,
        session: Session,
        user_id: uuid.UUID,
        refresh_hash: str,
    ) -> User | None:
        stmt = select(User).where(
            User.id == user_id,
            User.refresh_token_hash == refresh_hash,
            User.is_logged_in == True,  # noqa: E712
        )
        return session.exec(stmt).first()

    # ----- Listing -----

    def list(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        role: str | None = None,
        is_active: bool | None = None,
        is_approved: bool | None = None,
    ) -> tuple[list[User], int]:
        """
        Paginated, filtered user listing (newest first).

        Returns:
            (users, total matching rows)
        """
        filters = []
        if role is not None:
            filters.append(User.role == role)
        if is_active is not None:
            filters.append(User.is_active == is_active)
        if is_approved is not None:
            filters.append(User.is_approved == is_approved)

        stmt = (
            select(User)
            .where(*filters)
            .order_by(User.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(User).where(*filters)
        return list(session.exec(stmt).all()), session.exec(count_stmt).one()

    # ----- Basic CRUD -----

    def create(self, session: Session, user: User) -> User:
        """Insert a new User and return the persisted row."""
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    def update(self, session: Session, user: User) -> User:
        """Persist changes to an existing User."""
        user.updated_at = datetime.now(timezone.utc)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    def delete(self, session: Session, user: User) -> None:
        """Delete a User together with their saved addresses."""
        session.exec(delete(Address).where(Address.user_id == user.id))
        session.delete(user)
        session.commit()

    # ----- Session linkage (atomic updates) -----

    def record_login(
        self,
        session: Session,
        user: User,
        refresh_hash: str,
        access_hash: str,
    ) -> User:
        """
        Store a fresh token pair fingerprint and bump the login counter.

        The counter is incremented in SQL (login_count = login_count + 1)
        so concurrent logins never lose an increment.
        """
        now = datetime.now(timezone.utc)
        session.exec(
            update(User)
            .where(User.id == user.id)
            .values(
                refresh_token_hash=refresh_hash,
                access_token_hash=access_hash,
                is_logged_in=True,
                last_login=now,
                login_count=User.login_count + 1,
                updated_at=now,
            )
        )
        session.commit()
        session.refresh(user)
        return user

    def rotate_tokens(
        self,
        session: Session,
        user: User,
        refresh_hash: str,
        access_hash: str,
    ) -> User:
        """Overwrite both fingerprints without touching login stats."""
        session.exec(
            update(User)
            .where(User.id == user.id)
            .values(
                refresh_token_hash=refresh_hash,
                access_token_hash=access_hash,
                is_logged_in=True,
                updated_at=datetime.now(timezone.utc),
            )
        )
        session.commit()
        session.refresh(user)
        return user

    def clear_session(self, session: Session, user_id: uuid.UUID) -> None:
        """Revoke every outstanding token for the user."""
        session.exec(
            update(User)
            .where(User.id == user_id)
            .values(
                refresh_token_hash=None,
                access_token_hash=None,
                is_logged_in=False,
                updated_at=datetime.now(timezone.utc),
            )
        )
        session.commit()
