# vegbazar/schemas/offer.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

PackWeight = Literal["1kg", "500g", "250g", "100g"]


def _clean_ids(ids: list[uuid.UUID]) -> list[uuid.UUID]:
    """Drop duplicates, keep order."""
    return list(dict.fromkeys(ids))


class OfferCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(max_length=150)
    price: int = Field(gt=0)
    description: str | None = Field(default=None, max_length=1000)
    vegetable_ids: list[uuid.UUID] = Field(default_factory=list)
    vegetable_limit: int | None = Field(default=None, ge=1)
    weight: PackWeight | None = None
    total_weight: float = Field(gt=0)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Offer title is required")
        return v

    @field_validator("vegetable_ids")
    @classmethod
    def validate_ids(cls, v: list[uuid.UUID]) -> list[uuid.UUID]:
        return _clean_ids(v)


class OfferUpdate(SQLModel):
    """Partial update; `click_count` is not editable."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, max_length=150)
    price: int | None = Field(default=None, gt=0)
    description: str | None = Field(default=None, max_length=1000)
    vegetable_ids: list[uuid.UUID] | None = None
    vegetable_limit: int | None = Field(default=None, ge=1)
    weight: PackWeight | None = None
    total_weight: float | None = Field(default=None, gt=0)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Offer title cannot be empty")
        return v

    @field_validator("vegetable_ids")
    @classmethod
    def validate_ids(cls, v: list[uuid.UUID] | None) -> list[uuid.UUID] | None:
        return None if v is None else _clean_ids(v)


class OfferRead(SQLModel):
    id: uuid.UUID
    title: str
    price: int
    description: str | None = None
    vegetable_ids: list[uuid.UUID]
    vegetable_limit: int | None = None
    weight: PackWeight | None = None
    total_weight: float
    click_count: int
    created_at: datetime
