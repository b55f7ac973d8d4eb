# vegbazar/models/vegetable.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field

# Below this many kg a vegetable is shown as out of stock (smallest pack is 250 g).
OUT_OF_STOCK_THRESHOLD_KG = 0.25


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Vegetable(SQLModel, table=True):
    """
    Catalog entry sold by weight.

    Prices are whole rupees per pack size (1 kg, 500 g, 250 g, 100 g);
    market_price_* hold the reference price shown struck through.
    """

    __tablename__ = "vegetables"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=100,
        index=True,
        description="Display name",
    )

    slug: str = Field(
        max_length=120,
        unique=True,
        index=True,
        description="URL-friendly identifier (unique)",
    )

    image_url: str = Field(description="Public image URL")

    stock_kg: float = Field(default=0, ge=0)

    out_of_stock: bool = Field(
        default=True,
        index=True,
        description="Derived: stock_kg below OUT_OF_STOCK_THRESHOLD_KG",
    )

    description: str | None = Field(default=None, max_length=500)
    offer: str | None = Field(default=None, max_length=100)

    price_1kg: int = Field(gt=0)
    price_500g: int = Field(gt=0)
    price_250g: int = Field(gt=0)
    price_100g: int = Field(gt=0)

    market_price_1kg: int = Field(gt=0)
    market_price_500g: int = Field(gt=0)
    market_price_250g: int = Field(gt=0)
    market_price_100g: int = Field(gt=0)

    is_featured: bool = Field(default=False, index=True)

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
