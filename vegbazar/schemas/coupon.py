# vegbazar/schemas/coupon.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

DiscountType = Literal["percentage", "fixed"]


def _normalize_code(v: str) -> str:
    v = v.strip().upper()
    if not v:
        raise ValueError("Coupon code is required")
    return v


class CouponCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    code: str = Field(max_length=40)
    description: str | None = Field(default=None, max_length=500)
    discount_type: DiscountType
    discount_value: float = Field(gt=0)
    min_order_amount: float = Field(default=0, ge=0)
    max_discount: float | None = Field(default=None, ge=0)
    expiry_date: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=1)
    per_user_limit: int | None = Field(default=None, ge=1)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        return _normalize_code(v)

    @model_validator(mode="after")
    def percentage_is_capped(self) -> "CouponCreate":
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100%")
        return self


class CouponUpdate(SQLModel):
    """
    Partial update. `used_count` and `used_by` are bookkeeping and
    cannot be set here.

    The percentage cap is checked by the service against the merged row.
    """

    model_config = ConfigDict(extra="forbid")

    code: str | None = Field(default=None, max_length=40)
    description: str | None = Field(default=None, max_length=500)
    discount_type: DiscountType | None = None
    discount_value: float | None = Field(default=None, gt=0)
    min_order_amount: float | None = Field(default=None, ge=0)
    max_discount: float | None = Field(default=None, ge=0)
    expiry_date: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=1)
    per_user_limit: int | None = Field(default=None, ge=1)
    is_active: bool | None = None

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str | None) -> str | None:
        return None if v is None else _normalize_code(v)


class CouponCheck(SQLModel):
    """
    Body of /coupons/validate.

    Both fields are optional here so the service can answer with a
    single "required" message when either is missing.
    """

    code: str | None = Field(default=None, max_length=40)
    subtotal: float | None = None


class CouponApply(CouponCheck):
    delivery_charges: float = Field(default=0, ge=0)


class CouponRead(SQLModel):
    id: uuid.UUID
    code: str
    description: str | None = None
    discount_type: DiscountType
    discount_value: float
    min_order_amount: float
    max_discount: float | None = None
    expiry_date: datetime | None = None
    usage_limit: int | None = None
    per_user_limit: int | None = None
    used_count: int
    is_active: bool
    created_at: datetime


class CouponSummary(SQLModel):
    """What a shopper sees about the coupon they entered."""

    code: str
    description: str | None = None
    discount_type: DiscountType
    discount_value: float
    max_discount: float | None = None


class CouponValidation(SQLModel):
    valid: bool
    coupon: CouponSummary
    discount_amount: float
    final_amount: float


class CouponPricing(SQLModel):
    subtotal: float
    discount_amount: float
    total_after_discount: float
    delivery_charges: float
    final_total: float


class CouponApplication(SQLModel):
    coupon_id: uuid.UUID
    coupon_code: str
    pricing: CouponPricing
    savings: float
