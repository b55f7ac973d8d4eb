# vegbazar/schemas/vegetable.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

VegetableSort = Literal["name", "price", "stock", "newest"]


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("field cannot be empty")
    return v


class VegetableCreate(SQLModel):
    """
    Payload for creating a vegetable.

    - slug is optional: if omitted, generated from `name`.
    - only the 1 kg prices are required; missing pack prices are derived.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=100)
    slug: str | None = Field(default=None, max_length=120)
    image_url: str
    stock_kg: float = Field(ge=0)
    description: str | None = Field(default=None, max_length=500)
    offer: str | None = Field(default=None, max_length=100)
    is_featured: bool = False

    price_1kg: int = Field(gt=0)
    price_500g: int | None = Field(default=None, gt=0)
    price_250g: int | None = Field(default=None, gt=0)
    price_100g: int | None = Field(default=None, gt=0)

    market_price_1kg: int = Field(gt=0)
    market_price_500g: int | None = Field(default=None, gt=0)
    market_price_250g: int | None = Field(default=None, gt=0)
    market_price_100g: int | None = Field(default=None, gt=0)

    @field_validator("name", "image_url")
    @classmethod
    def not_empty(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("slug cannot be empty if provided")
        return v


class VegetableUpdate(SQLModel):
    """
    Partial update payload.

    Changing price_1kg without the smaller pack prices re-derives them.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    slug: str | None = Field(default=None, max_length=120)
    image_url: str | None = None
    stock_kg: float | None = Field(default=None, ge=0)
    description: str | None = Field(default=None, max_length=500)
    offer: str | None = Field(default=None, max_length=100)
    is_featured: bool | None = None

    price_1kg: int | None = Field(default=None, gt=0)
    price_500g: int | None = Field(default=None, gt=0)
    price_250g: int | None = Field(default=None, gt=0)
    price_100g: int | None = Field(default=None, gt=0)

    market_price_1kg: int | None = Field(default=None, gt=0)
    market_price_500g: int | None = Field(default=None, gt=0)
    market_price_250g: int | None = Field(default=None, gt=0)
    market_price_100g: int | None = Field(default=None, gt=0)

    @field_validator("name", "slug", "image_url")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _strip_required(v)


class StockAdjust(SQLModel):
    """Signed stock change in kg (negative to deduct)."""

    model_config = ConfigDict(extra="forbid")

    delta_kg: float

    @field_validator("delta_kg")
    @classmethod
    def non_zero(cls, v: float) -> float:
        if v == 0:
            raise ValueError("delta_kg cannot be zero")
        return v


class VegetableRead(SQLModel):
    id: uuid.UUID
    name: str
    slug: str
    image_url: str
    stock_kg: float
    out_of_stock: bool
    description: str | None = None
    offer: str | None = None
    is_featured: bool

    price_1kg: int
    price_500g: int
    price_250g: int
    price_100g: int

    market_price_1kg: int
    market_price_500g: int
    market_price_250g: int
    market_price_100g: int

    created_at: datetime
    updated_at: datetime
