# vegbazar/models/coupon.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Coupon(SQLModel, table=True):
    """
    Discount code redeemable against a basket subtotal (rupees).

    - code is unique and stored uppercase
    - discount_type is "percentage" (value 1-100) or "fixed" (rupees off)
    - used_by lists one user id per redemption, so repeats are counted
    """

    __tablename__ = "coupons"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    code: str = Field(max_length=40, unique=True, index=True)
    description: str | None = Field(default=None, max_length=500)

    discount_type: str = Field(max_length=20)
    discount_value: float = Field(gt=0)
    min_order_amount: float = Field(default=0, ge=0)
    max_discount: float | None = Field(default=None, ge=0)

    expiry_date: datetime | None = Field(default=None)
    usage_limit: int | None = Field(default=None, ge=1)
    per_user_limit: int | None = Field(default=None, ge=1)
    used_count: int = Field(default=0, ge=0)
    # Reassign rather than mutate in place; JSON columns don't track mutations.
    used_by: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
