# vegbazar/services/coupon_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from vegbazar.models.coupon import Coupon
from vegbazar.repositories.coupon_repo import CouponRepository
from vegbazar.schemas.auth import CurrentUser
from vegbazar.schemas.coupon import (
    CouponApply,
    CouponCheck,
    CouponCreate,
    CouponSummary,
    CouponUpdate,
)

logger = logging.getLogger(__name__)


def compute_discount(coupon: Coupon, subtotal: float) -> float:
    """
    Rupees off `subtotal`, rounded to paise.

    Percentage coupons are capped by `max_discount`; fixed coupons never
    take off more than the subtotal.
    """
    if coupon.discount_type == "percentage":
        amount = subtotal * coupon.discount_value / 100
        if coupon.max_discount and amount > coupon.max_discount:
            amount = coupon.max_discount
    else:
        amount = min(coupon.discount_value, subtotal)
    return round(amount, 2)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


class CouponService:
    """
    Business logic for Coupon.

    Shoppers validate a code against their subtotal and get the discount
    back. Nothing here redeems a coupon: used_count and used_by are only read.
    """

    def __init__(self, repo: CouponRepository):
        self.repo = repo

    # ----- Shopper flows -----

    def _redeemable(
        self,
        session: Session,
        payload: CouponCheck,
        current_user: CurrentUser | None,
    ) -> tuple[Coupon, float]:
        """
        Run every rule in order and return (coupon, subtotal).

        Raises:
            HTTPException(400): missing input, expired, below minimum, limits hit.
            HTTPException(404): unknown or inactive code.
        """
        code = (payload.code or "").strip().upper()
        if not code or not payload.subtotal:
            raise _bad_request("Coupon code and subtotal are required")
        if payload.subtotal <= 0:
            raise _bad_request("Subtotal must be greater than 0")
        subtotal = payload.subtotal

        coupon = self.repo.get_by_code(session, code, active_only=True)
        if coupon is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Invalid or expired coupon code",
            )

        if coupon.expiry_date and _as_utc(coupon.expiry_date) < datetime.now(timezone.utc):
            raise _bad_request("This coupon has expired")

        if coupon.min_order_amount and subtotal < coupon.min_order_amount:
            raise _bad_request(
                f"Minimum order amount of ₹{coupon.min_order_amount:g} required for this coupon"
            )

        if coupon.usage_limit and coupon.used_count >= coupon.usage_limit:
            raise _bad_request("This coupon has reached its usage limit")

        if current_user is not None and coupon.per_user_limit:
            uses = coupon.used_by.count(str(current_user.id))
            if uses >= coupon.per_user_limit:
                raise _bad_request(
                    "You have already used this coupon the maximum number of times"
                )

        return coupon, subtotal

    def validate(
        self,
        session: Session,
        payload: CouponCheck,
        current_user: CurrentUser | None = None,
    ) -> dict:
        coupon, subtotal = self._redeemable(session, payload, current_user)
        discount = compute_discount(coupon, subtotal)
        return {
            "valid": True,
            "coupon": CouponSummary.model_validate(coupon),
            "discount_amount": discount,
            "final_amount": round(subtotal - discount, 2),
        }

    def apply(
        self,
        session: Session,
        payload: CouponApply,
        current_user: CurrentUser | None = None,
    ) -> dict:
        """Price a checkout with the coupon and the delivery charge on top."""
        coupon, subtotal = self._redeemable(session, payload, current_user)
        discount = compute_discount(coupon, subtotal)
        after_discount = round(subtotal - discount, 2)
        return {
            "coupon_id": coupon.id,
            "coupon_code": coupon.code,
            "pricing": {
                "subtotal": subtotal,
                "discount_amount": discount,
                "total_after_discount": after_discount,
                "delivery_charges": payload.delivery_charges,
                "final_total": round(after_discount + payload.delivery_charges, 2),
            },
            "savings": discount,
        }

    # ----- Admin operations -----

    def _save(self, session: Session, coupon: Coupon, create: bool) -> Coupon:
        try:
            return self.repo.create(session, coupon) if create else self.repo.update(session, coupon)
        except IntegrityError:
            session.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Coupon code already exists",
            )

    def _ensure_code_free(
        self, session: Session, code: str, exclude_id: uuid.UUID | None = None
    ) -> None:
        existing = self.repo.get_by_code(session, code)
        if existing is not None and existing.id != exclude_id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Coupon code already exists",
            )

    def list_coupons(
        self,
        session: Session,
        skip: int,
        limit: int,
        is_active: bool | None = None,
    ) -> tuple[list[Coupon], int]:
        return self.repo.list(session, skip=skip, limit=limit, is_active=is_active)

    def get_coupon(self, session: Session, coupon_id: uuid.UUID) -> Coupon:
        coupon = self.repo.get_by_id(session, coupon_id)
        if not coupon:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Coupon not found",
            )
        return coupon

    def create_coupon(self, session: Session, payload: CouponCreate) -> Coupon:
        self._ensure_code_free(session, payload.code)
        coupon = self._save(session, Coupon(**payload.model_dump()), create=True)
        logger.info("Created coupon %s (%s)", coupon.id, coupon.code)
        return coupon

    def update_coupon(self, session: Session, coupon_id: uuid.UUID, payload: CouponUpdate) -> Coupon:
        coupon = self.get_coupon(session, coupon_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)

        if "code" in changes and changes["code"] != coupon.code:
            self._ensure_code_free(session, changes["code"], exclude_id=coupon.id)

        discount_type = changes.get("discount_type", coupon.discount_type)
        discount_value = changes.get("discount_value", coupon.discount_value)
        if discount_type == "percentage" and discount_value > 100:
            raise _bad_request("Percentage discount cannot exceed 100%")

        for field, value in changes.items():
            setattr(coupon, field, value)
        return self._save(session, coupon, create=False)

    def delete_coupon(self, session: Session, coupon_id: uuid.UUID) -> None:
        coupon = self.get_coupon(session, coupon_id)
        self.repo.delete(session, coupon)
        logger.info("Deleted coupon %s", coupon_id)
