# vegbazar/models/address.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Address(SQLModel, table=True):
    """
    Saved delivery address of a customer.

    distance_km is measured from the delivery center; delivery_charge
    (paise) is derived from it whenever the coordinates change.
    At most one address per user has is_default set.
    """

    __tablename__ = "addresses"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    # home | work | other
    type: str = Field(default="home", max_length=10)
    street: str = Field(max_length=200)
    area: str = Field(max_length=100)
    city: str = Field(max_length=100)
    state: str = Field(max_length=100)
    pincode: str = Field(max_length=10)
    country: str = Field(default="India", max_length=60)

    latitude: float | None = Field(default=None)
    longitude: float | None = Field(default=None)
    distance_km: float = Field(default=0, ge=0)
    delivery_charge: int = Field(default=0, ge=0, description="Paise")

    is_default: bool = Field(default=False)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
