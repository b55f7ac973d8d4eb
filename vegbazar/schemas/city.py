# vegbazar/schemas/city.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


def _clean_areas(areas: list[str]) -> list[str]:
    """Trim, drop blanks and duplicates, keep order."""
    seen: dict[str, None] = {}
    for area in areas:
        area = area.strip()
        if area:
            seen.setdefault(area, None)
    return list(seen)


class CityCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=100)
    areas: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("City name is required")
        return v

    @field_validator("areas")
    @classmethod
    def validate_areas(cls, v: list[str]) -> list[str]:
        return _clean_areas(v)


class CityUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    areas: list[str] | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("City name cannot be empty")
        return v

    @field_validator("areas")
    @classmethod
    def validate_areas(cls, v: list[str] | None) -> list[str] | None:
        return None if v is None else _clean_areas(v)


class CityRead(SQLModel):
    id: uuid.UUID
    name: str
    areas: list[str]
    created_at: datetime
