# vegbazar/models/city.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class City(SQLModel, table=True):
    """Delivery city with the areas served inside it."""

    __tablename__ = "cities"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    name: str = Field(max_length=100, unique=True, index=True)
    # Reassign rather than mutate in place; JSON columns don't track mutations.
    areas: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
