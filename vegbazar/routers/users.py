# vegbazar/routers/users.py
import uuid

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from vegbazar.core.auth import require_admin, require_auth, require_roles
from vegbazar.database import get_session
from vegbazar.repositories.user_repo import UserRepository
from vegbazar.schemas.auth import CurrentUser
from vegbazar.schemas.common import ApiResponse, Page, api_response
from vegbazar.schemas.user import (
    AvailabilityRead,
    AvailabilityUpdate,
    Role,
    UserAdminRead,
    UserApprovalUpdate,
    UserRead,
    UserRoleUpdate,
    UserStatusUpdate,
    UserUpdate,
)
from vegbazar.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

repo = UserRepository()
service = UserService(repo)


# -------- Self profile --------


@router.get("/me", response_model=ApiResponse[UserRead])
def read_me(
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_auth),
):
    """Return the authenticated user's profile."""
    return api_response(UserRead.model_validate(service.get_me(session, current_user)))


@router.patch("/me", response_model=ApiResponse[UserRead])
def update_me(
    payload: UserUpdate,
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_auth),
):
    """
    Update the authenticated user's profile (partial update).

    Editable: username, name, phone. Email and role are not editable here.
    """
    user = service.update_me(session, current_user, payload)
    return api_response(UserRead.model_validate(user), "Profile updated")


@router.patch("/me/availability", response_model=ApiResponse[AvailabilityRead])
def update_availability(
    payload: AvailabilityUpdate,
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_roles("delivery_partner")),
):
    """Delivery partners go on/off duty and report their current position."""
    user = service.update_availability(session, current_user, payload)
    return api_response(AvailabilityRead.model_validate(user), "Availability updated")


# -------- Admin endpoints --------


@router.get("", response_model=ApiResponse[Page[UserAdminRead]])
def list_users(
    session: Session = Depends(get_session),
    _: CurrentUser = Depends(require_admin),
    role: Role | None = None,
    is_active: bool | None = None,
    is_approved: bool | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
):
    """
    List users (admin only).

    Filters: role, is_active, is_approved. Pagination via skip/limit.
    """
    users, total = service.list_users(
        session, skip, limit, role=role, is_active=is_active, is_approved=is_approved
    )
    items = [UserAdminRead.model_validate(u) for u in users]
    return api_response({"items": items, "total": total, "skip": skip, "limit": limit})


@router.get("/{user_id}", response_model=ApiResponse[UserAdminRead])
def get_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
    _: CurrentUser = Depends(require_admin),
):
    """Get a specific user by id (admin only)."""
    return api_response(UserAdminRead.model_validate(service.get_user(session, user_id)))


@router.patch("/{user_id}/status", response_model=ApiResponse[UserAdminRead])
def change_status(
    user_id: uuid.UUID,
    payload: UserStatusUpdate,
    session: Session = Depends(get_session),
    admin: CurrentUser = Depends(require_admin),
):
    """Activate / deactivate an account. Deactivating signs the user out."""
    user = service.set_status(session, admin, user_id, payload)
    message = "User activated" if user.is_active else "User deactivated"
    return api_response(UserAdminRead.model_validate(user), message)


@router.patch("/{user_id}/approval", response_model=ApiResponse[UserAdminRead])
def change_approval(
    user_id: uuid.UUID,
    payload: UserApprovalUpdate,
    session: Session = Depends(get_session),
    admin: CurrentUser = Depends(require_admin),
):
    """Approve a staff account (editor, delivery_partner, packaging)."""
    user = service.set_approval(session, admin, user_id, payload)
    message = "User approved" if user.is_approved else "User approval revoked"
    return api_response(UserAdminRead.model_validate(user), message)


@router.patch("/{user_id}/role", response_model=ApiResponse[UserAdminRead])
def change_role(
    user_id: uuid.UUID,
    payload: UserRoleUpdate,
    session: Session = Depends(get_session),
    admin: CurrentUser = Depends(require_admin),
):
    """
    Update a user's role (admin only).

    Guests are anonymous and don't have rows.
    """
    user = service.update_role(session, admin, user_id, payload)
    return api_response(UserAdminRead.model_validate(user), "Role updated")


@router.delete("/{user_id}", response_model=ApiResponse[None])
def delete_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
    admin: CurrentUser = Depends(require_admin),
):
    service.delete_user(session, admin, user_id)
    return api_response(None, "User deleted")
