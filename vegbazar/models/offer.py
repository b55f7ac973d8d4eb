# vegbazar/models/offer.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Offer(SQLModel, table=True):
    """
    Promotional basket: a fixed price for a set of vegetables.

    `vegetable_ids` holds Vegetable ids as strings; `weight` is the pack
    size each item comes in (1kg | 500g | 250g | 100g).
    """

    __tablename__ = "offers"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    title: str = Field(max_length=150, index=True)
    price: int = Field(gt=0, description="Offer price in rupees")
    description: str | None = Field(default=None, max_length=1000)

    # Reassign rather than mutate in place; JSON columns don't track mutations.
    vegetable_ids: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    vegetable_limit: int | None = Field(default=None, ge=1)
    weight: str | None = Field(default=None, max_length=10)
    total_weight: float = Field(gt=0, description="Total basket weight in kg")

    click_count: int = Field(default=0, ge=0)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
