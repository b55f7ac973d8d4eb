# vegbazar/services/user_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from vegbazar.models.user import User
from vegbazar.repositories.user_repo import UserRepository
from vegbazar.schemas.auth import CurrentUser
from vegbazar.schemas.user import (
    ROLES_REQUIRING_APPROVAL,
    AvailabilityUpdate,
    UserApprovalUpdate,
    UserRoleUpdate,
    UserStatusUpdate,
    UserUpdate,
)

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for User profiles and account administration.

    Responsibilities:
      - enforce app rules (no email change, unique username/phone)
      - guard admins against locking themselves out
      - orchestrate repository operations
      - map domain errors to HTTP errors
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    @staticmethod
    def _ensure_not_admin(user: User, message: str) -> None:
        """Admins are managed out of band; other admins cannot demote, disable or delete them."""
        if user.role == "admin":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=message,
            )

    # ----- Self profile -----

    def get_me(self, session: Session, current_user: CurrentUser) -> User:
        """Return the current authenticated user's row."""
        return self.get_user(session, current_user.id)

    def update_me(
        self,
        session: Session,
        current_user: CurrentUser,
        payload: UserUpdate,
    ) -> User:
        """
        Partial update for profile edits.

        Editable: username, name, phone. Username and phone must stay unique.
        """
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No fields to update",
            )

        user = self.get_user(session, current_user.id)

        username = changes.get("username")
        if username and username != user.username:
            if self.repo.get_by_username(session, username) is not None:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Username already taken.",
                )

        phone = changes.get("phone")
        if phone and phone != user.phone:
            existing = self.repo.get_by_phone(session, phone)
            if existing is not None and existing.id != user.id:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Phone number already registered.",
                )

        for field, value in changes.items():
            setattr(user, field, value)

        try:
            return self.repo.update(session, user)
        except IntegrityError:
            session.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Username or phone already in use.",
            )

    # ----- Admin operations -----

    def list_users(
        self,
        session: Session,
        skip: int,
        limit: int,
        role: str | None = None,
        is_active: bool | None = None,
        is_approved: bool | None = None,
    ) -> tuple[list[User], int]:
        """List users with filters and pagination (admin only)."""
        return self.repo.list(
            session,
            skip=skip,
            limit=limit,
            role=role,
            is_active=is_active,
            is_approved=is_approved,
        )

    def get_user(self, session: Session, user_id: uuid.UUID) -> User:
        """
        Get a user by id.

        Raises:
            HTTPException(404): if not found.
        """
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user

    def update_availability(
        self,
        session: Session,
        current_user: CurrentUser,
        payload: AvailabilityUpdate,
    ) -> User:
        """Toggle a delivery partner's availability and record their position."""
        user = self.get_me(session, current_user)
        if payload.is_available is not None:
            user.is_available = payload.is_available
        if payload.latitude is not None:
            user.current_latitude = payload.latitude
            user.current_longitude = payload.longitude
        return self.repo.update(session, user)

    def set_status(
        self,
        session: Session,
        admin: CurrentUser,
        user_id: uuid.UUID,
        payload: UserStatusUpdate,
    ) -> User:
        """
        Activate or deactivate an account.

        Deactivation also revokes the user's session.
        """
        if user_id == admin.id and not payload.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot deactivate your own account",
            )

        user = self.get_user(session, user_id)
        if not payload.is_active:
            self._ensure_not_admin(user, "Admin accounts cannot be deactivated")
        user.is_active = payload.is_active
        if not payload.is_active:
            user.is_logged_in = False
            user.refresh_token_hash = None
            user.access_token_hash = None
        logger.info(
            "Admin %s set is_active=%s for user %s", admin.id, payload.is_active, user_id
        )
        return self.repo.update(session, user)

    def set_approval(
        self,
        session: Session,
        admin: CurrentUser,
        user_id: uuid.UUID,
        payload: UserApprovalUpdate,
    ) -> User:
        """Approve or revoke approval of a staff account."""
        user = self.get_user(session, user_id)
        if user.role not in ROLES_REQUIRING_APPROVAL:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This role does not require approval",
            )

        user.is_approved = payload.approved
        if payload.approved:
            user.approved_by = admin.id
            user.approved_at = datetime.now(timezone.utc)
            user.rejection_reason = None
        else:
            user.approved_by = None
            user.approved_at = None
            user.rejection_reason = payload.rejection_reason
        logger.info(
            "Admin %s set is_approved=%s for user %s", admin.id, payload.approved, user_id
        )
        return self.repo.update(session, user)

    def update_role(
        self,
        session: Session,
        admin: CurrentUser,
        user_id: uuid.UUID,
        payload: UserRoleUpdate,
    ) -> User:
        """
        Change a user's role (admin only).

        Moving into a staff role resets approval; moving out of one
        approves implicitly.
        """
        if user_id == admin.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot change your own role",
            )

        user = self.get_user(session, user_id)
        self._ensure_not_admin(user, "Admin roles cannot be changed")
        if payload.role == user.role:
            return user

        user.role = payload.role
        if payload.role in ROLES_REQUIRING_APPROVAL:
            user.is_approved = False
            user.approved_by = None
            user.approved_at = None
        else:
            user.is_approved = True
        return self.repo.update(session, user)

    def delete_user(self, session: Session, admin: CurrentUser, user_id: uuid.UUID) -> None:
        """Delete a user (admin only). Admin accounts cannot be deleted here."""
        if user_id == admin.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You cannot delete your own account",
            )
        user = self.get_user(session, user_id)
        self._ensure_not_admin(user, "Admin accounts cannot be deleted")
        self.repo.delete(session, user)
        logger.info("Admin %s deleted user %s", admin.id, user_id)
