# vegbazar/routers/coupons.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from vegbazar.core.auth import get_optional_user, require_admin
from vegbazar.database import get_session
from vegbazar.repositories.coupon_repo import CouponRepository
from vegbazar.schemas.auth import CurrentUser
from vegbazar.schemas.common import ApiResponse, Page, api_response
from vegbazar.schemas.coupon import (
    CouponApplication,
    CouponApply,
    CouponCheck,
    CouponCreate,
    CouponRead,
    CouponUpdate,
    CouponValidation,
)
from vegbazar.services.coupon_service import CouponService

router = APIRouter(prefix="/coupons", tags=["Coupons"])

repo = CouponRepository()
service = CouponService(repo)


# -------- Checkout --------


@router.post("/validate", response_model=ApiResponse[CouponValidation])
def validate_coupon(
    payload: CouponCheck,
    session: Session = Depends(get_session),
    current_user: CurrentUser | None = Depends(get_optional_user),
):
    """
    Check a code against a subtotal and return the discount.

    Guests can call this; the per-user limit only applies when signed in.
    """
    result = service.validate(session, payload, current_user)
    return api_response(result, "Coupon validated successfully")


@router.post("/apply", response_model=ApiResponse[CouponApplication])
def apply_coupon(
    payload: CouponApply,
    session: Session = Depends(get_session),
    current_user: CurrentUser | None = Depends(get_optional_user),
):
    """Full checkout pricing: subtotal, discount, delivery charge, total."""
    result = service.apply(session, payload, current_user)
    return api_response(result, "Coupon applied successfully")


# -------- Admin --------


@router.get(
    "",
    response_model=ApiResponse[Page[CouponRead]],
    dependencies=[Depends(require_admin)],
)
def list_coupons(
    session: Session = Depends(get_session),
    is_active: bool | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
):
    coupons, total = service.list_coupons(session, skip, limit, is_active=is_active)
    items = [CouponRead.model_validate(c) for c in coupons]
    return api_response(
        {"items": items, "total": total, "skip": skip, "limit": limit},
        "Coupons fetched successfully",
    )


@router.get(
    "/{coupon_id}",
    response_model=ApiResponse[CouponRead],
    dependencies=[Depends(require_admin)],
)
def get_coupon(coupon_id: uuid.UUID, session: Session = Depends(get_session)):
    coupon = service.get_coupon(session, coupon_id)
    return api_response(CouponRead.model_validate(coupon), "Coupon fetched successfully")


@router.post(
    "",
    response_model=ApiResponse[CouponRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_coupon(payload: CouponCreate, session: Session = Depends(get_session)):
    coupon = service.create_coupon(session, payload)
    return api_response(
        CouponRead.model_validate(coupon), "Coupon created successfully", status.HTTP_201_CREATED
    )


@router.patch(
    "/{coupon_id}",
    response_model=ApiResponse[CouponRead],
    dependencies=[Depends(require_admin)],
)
def update_coupon(
    coupon_id: uuid.UUID, payload: CouponUpdate, session: Session = Depends(get_session)
):
    coupon = service.update_coupon(session, coupon_id, payload)
    return api_response(CouponRead.model_validate(coupon), "Coupon updated successfully")


@router.delete(
    "/{coupon_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_admin)],
)
def delete_coupon(coupon_id: uuid.UUID, session: Session = Depends(get_session)):
    service.delete_coupon(session, coupon_id)
    return api_response(None, "Coupon deleted successfully")
