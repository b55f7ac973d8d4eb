# vegbazar/models/testimonial.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Testimonial(SQLModel, table=True):
    """
    Customer review submitted from the storefront.

    Shown publicly only once approved AND published by an admin.
    """

    __tablename__ = "testimonials"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    name: str = Field(max_length=100)
    email: str = Field(max_length=255)
    rating: int = Field(ge=1, le=5, index=True)
    comment: str = Field(max_length=500)
    is_approved: bool = Field(default=False, index=True)
    is_published: bool = Field(default=False, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
