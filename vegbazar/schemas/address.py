# vegbazar/schemas/address.py
import re
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

AddressType = Literal["home", "work", "other"]

PINCODE_PATTERN = re.compile(r"^\d{6}$")


def _required_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("cannot be empty")
    return v


def _check_pincode(v: str) -> str:
    v = v.strip()
    if not PINCODE_PATTERN.match(v):
        raise ValueError("pincode must be 6 digits")
    return v


def _coordinates_pair(latitude: float | None, longitude: float | None) -> None:
    if (latitude is None) != (longitude is None):
        raise ValueError("latitude and longitude must be sent together")


class AddressCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    type: AddressType = "home"
    street: str = Field(max_length=200)
    area: str = Field(max_length=100)
    city: str = Field(max_length=100)
    state: str = Field(max_length=100)
    pincode: str = Field(max_length=10)
    country: str = Field(default="India", max_length=60)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    is_default: bool = False

    @field_validator("street", "area", "city", "state", "country")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _required_text(v)

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v: str) -> str:
        return _check_pincode(v)

    @model_validator(mode="after")
    def coordinates_come_in_pairs(self) -> "AddressCreate":
        _coordinates_pair(self.latitude, self.longitude)
        return self


class AddressUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    type: AddressType | None = None
    street: str | None = Field(default=None, max_length=200)
    area: str | None = Field(default=None, max_length=100)
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    pincode: str | None = Field(default=None, max_length=10)
    country: str | None = Field(default=None, max_length=60)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    is_default: bool | None = None
    is_active: bool | None = None

    @field_validator("street", "area", "city", "state", "country")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return None if v is None else _required_text(v)

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v: str | None) -> str | None:
        return None if v is None else _check_pincode(v)

    @model_validator(mode="after")
    def coordinates_come_in_pairs(self) -> "AddressUpdate":
        _coordinates_pair(self.latitude, self.longitude)
        return self


class AddressRead(SQLModel):
    id: uuid.UUID
    type: AddressType
    street: str
    area: str
    city: str
    state: str
    pincode: str
    country: str
    latitude: float | None = None
    longitude: float | None = None
    distance_km: float
    delivery_charge: int
    is_default: bool
    is_active: bool
    created_at: datetime


class DeliveryCharges(SQLModel):
    """Breakdown in paise."""

    base_charge: int
    distance_charge: int
    total_charge: int
    distance_km: float
    currency: str = "INR"
