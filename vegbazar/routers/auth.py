# vegbazar/routers/auth.py
from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status
from sqlmodel import Session

from vegbazar.core.auth import get_optional_user, require_auth
from vegbazar.core.config import get_settings
from vegbazar.core.cookies import REFRESH_COOKIE, clear_auth_cookies, set_auth_cookies
from vegbazar.database import get_session
from vegbazar.repositories.user_repo import UserRepository
from vegbazar.schemas.auth import (
    AdminLoginRequest,
    AdminRegisterPayload,
    AuthPayload,
    ChangePasswordRequest,
    CurrentUser,
    EmailRequest,
    GoogleAuthRequest,
    LoginRequest,
    RefreshPayload,
    RegisterRequest,
    ResetPasswordRequest,
    SetPasswordRequest,
    StaffRegisterPayload,
    StaffRegisterRequest,
    VerifyEmailRequest,
)
from vegbazar.schemas.common import ApiResponse, api_response
from vegbazar.schemas.user import UserRead
from vegbazar.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])

repo = UserRepository()
service = AuthService(repo)


def _signed_in(response: Response, user, tokens) -> dict:
    set_auth_cookies(response, tokens, user.role, get_settings())
    return {"user": UserRead.model_validate(user), "access_token": tokens.access_token}


# -------- Registration --------


@router.post(
    "/register",
    response_model=ApiResponse[AuthPayload],
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: RegisterRequest,
    response: Response,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
):
    """
    Create a customer account and sign it in.

    Sets `accessToken` / `refreshToken` cookies. The welcome email is sent
    after the response.
    """
    user, tokens = service.register(session, payload)
    background_tasks.add_task(service.send_welcome_email, user.email, user.username)
    return api_response(
        _signed_in(response, user, tokens),
        "User registered successfully",
        status.HTTP_201_CREATED,
    )


@router.post(
    "/admin/register",
    response_model=ApiResponse[AdminRegisterPayload],
    status_code=status.HTTP_201_CREATED,
)
def admin_register(payload: RegisterRequest, session: Session = Depends(get_session)):
    """
    Create an admin account pending email verification.

    No tokens are issued; the admin must verify the emailed link first.
    """
    user, email_sent = service.admin_register(session, payload)
    message = (
        "Admin registered. Please check your email to verify your account."
        if email_sent
        else "Admin registered, but the verification email could not be sent."
    )
    return api_response(
        {"user": UserRead.model_validate(user), "email_sent": email_sent},
        message,
        status.HTTP_201_CREATED,
    )


@router.post(
    "/staff/register",
    response_model=ApiResponse[StaffRegisterPayload],
    status_code=status.HTTP_201_CREATED,
)
def staff_register(payload: StaffRegisterRequest, session: Session = Depends(get_session)):
    """
    Sign-up for editors, delivery partners and packaging staff.

    `role_details` needs `vehicle_type`, `shift` or `department`
    depending on the role. The account cannot sign in until approved.
    """
    user = service.staff_register(session, payload)
    label = user.role.replace("_", " ").capitalize()
    return api_response(
        {"user": UserRead.model_validate(user), "needs_approval": True},
        f"{label} registration submitted for approval",
        status.HTTP_201_CREATED,
    )


# -------- Login --------


@router.post("/login", response_model=ApiResponse[AuthPayload])
def login(payload: LoginRequest, response: Response, session: Session = Depends(get_session)):
    """Customer login with email or phone number."""
    user, tokens = service.login(session, payload)
    return api_response(_signed_in(response, user, tokens), "Login successful")


@router.post("/admin/login", response_model=ApiResponse[AuthPayload])
def admin_login(
    payload: AdminLoginRequest,
    response: Response,
    session: Session = Depends(get_session),
):
    user, tokens = service.admin_login(session, payload)
    return api_response(_signed_in(response, user, tokens), "Admin login successful")


@router.post("/staff/login", response_model=ApiResponse[AuthPayload])
def staff_login(
    payload: AdminLoginRequest,
    response: Response,
    session: Session = Depends(get_session),
):
    """Login for editors, delivery partners and packaging staff (approval required)."""
    user, tokens = service.staff_login(session, payload)
    return api_response(_signed_in(response, user, tokens), "Login successful")


@router.post("/google", response_model=ApiResponse[AuthPayload])
def google_login(
    payload: GoogleAuthRequest,
    response: Response,
    session: Session = Depends(get_session),
):
    """Sign in or sign up with a Google ID token."""
    user, tokens = service.google_login(session, payload.credential)
    return api_response(_signed_in(response, user, tokens), "Google login successful")


# -------- Session --------


@router.post("/refresh", response_model=ApiResponse[RefreshPayload])
def refresh(request: Request, response: Response, session: Session = Depends(get_session)):
    """
    Rotate the token pair using the `refreshToken` cookie.

    The presented refresh token stops working once this succeeds.
    """
    user, tokens = service.refresh(session, request.cookies.get(REFRESH_COOKIE))
    set_auth_cookies(response, tokens, user.role, get_settings())
    return api_response({"access_token": tokens.access_token}, "Token refreshed")


@router.post("/logout", response_model=ApiResponse[None])
def logout(
    request: Request,
    response: Response,
    session: Session = Depends(get_session),
    current_user: CurrentUser | None = Depends(get_optional_user),
):
    """
    Revoke the current session; always clear cookies.

    Falls back to the `refreshToken` cookie when the access token no
    longer resolves, so an expired access token still logs out.
    """
    role = service.logout(session, current_user, request.cookies.get(REFRESH_COOKIE))
    clear_auth_cookies(response, role or "user", get_settings())
    return api_response(None, "Logged out successfully")


@router.post("/logout-all", response_model=ApiResponse[None])
def logout_all(
    response: Response,
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_auth),
):
    """Sign out every device holding a token for this account."""
    service.logout_all(session, current_user)
    clear_auth_cookies(response, current_user.role, get_settings())
    return api_response(None, "Logged out from all devices successfully")


@router.get("/me", response_model=ApiResponse[UserRead])
def me(
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_auth),
):
    user = repo.get_by_id(session, current_user.id)
    return api_response(UserRead.model_validate(user), "User fetched")


# -------- Password reset / email verification --------


@router.post("/forgot-password", response_model=ApiResponse[None])
def forgot_password(payload: EmailRequest, session: Session = Depends(get_session)):
    """Same response whether or not the email belongs to an account."""
    return api_response(None, service.forgot_password(session, payload.email))


@router.post("/reset-password", response_model=ApiResponse[None])
def reset_password(payload: ResetPasswordRequest, session: Session = Depends(get_session)):
    service.reset_password(session, payload)
    return api_response(None, "Password reset successful. Please login with your new password.")


@router.post("/verify-email", response_model=ApiResponse[UserRead])
def verify_email(payload: VerifyEmailRequest, session: Session = Depends(get_session)):
    user = service.verify_email(session, payload.token)
    return api_response(UserRead.model_validate(user), "Email verified successfully")


@router.post("/admin/resend-verification", response_model=ApiResponse[None])
def resend_verification(payload: EmailRequest, session: Session = Depends(get_session)):
    return api_response(None, service.resend_verification(session, payload.email))


# -------- Authenticated account operations --------


@router.post("/change-password", response_model=ApiResponse[None])
def change_password(
    payload: ChangePasswordRequest,
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_auth),
):
    service.change_password(session, current_user, payload)
    return api_response(None, "Password changed successfully")


@router.post("/set-password", response_model=ApiResponse[None])
def set_password(
    payload: SetPasswordRequest,
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_auth),
):
    """For accounts created with Google sign-in that have no password yet."""
    service.set_password(session, current_user, payload.password)
    return api_response(None, "Password set successfully")


@router.post("/google/link", response_model=ApiResponse[UserRead])
def link_google(
    payload: GoogleAuthRequest,
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_auth),
):
    user = service.link_google(session, current_user, payload.credential)
    return api_response(UserRead.model_validate(user), "Google account linked")


@router.post("/google/unlink", response_model=ApiResponse[UserRead])
def unlink_google(
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_auth),
):
    user = service.unlink_google(session, current_user)
    return api_response(UserRead.model_validate(user), "Google account unlinked")
