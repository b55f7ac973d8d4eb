# vegbazar/schemas/testimonial.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, EmailStr, field_validator
from sqlmodel import SQLModel, Field


class TestimonialCreate(SQLModel):
    """Public submission. New testimonials start unapproved and unpublished."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=100)
    email: EmailStr
    rating: int = Field(ge=1, le=5)
    comment: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 10:
            raise ValueError("Comment must be at least 10 characters")
        if len(v) > 500:
            raise ValueError("Comment cannot exceed 500 characters")
        return v


class TestimonialModerate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    is_approved: bool | None = None
    is_published: bool | None = None


class TestimonialPublic(SQLModel):
    """Storefront view; the reviewer's email is never exposed."""

    id: uuid.UUID
    name: str
    rating: int
    comment: str
    created_at: datetime


class TestimonialRead(TestimonialPublic):
    email: str
    is_approved: bool
    is_published: bool


class RatingCount(SQLModel):
    rating: int
    count: int


class TestimonialStats(SQLModel):
    total: int
    approved: int
    published: int
    average_rating: float | None
    rating_distribution: list[RatingCount]
