# vegbazar/repositories/city_repo.py
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from vegbazar.models.city import City


class CityRepository:
    """Data access layer for City."""

    def get_by_id(self, session: Session, city_id: uuid.UUID) -> City | None:
        return session.get(City, city_id)

    def get_by_name(self, session: Session, name: str) -> City | None:
        """Case-insensitive exact match."""
        stmt = select(City).where(func.lower(City.name) == name.strip().lower())
        return session.exec(stmt).first()

    def list(self, session: Session) -> list[City]:
        stmt = select(City).order_by(City.created_at.desc())
        return list(session.exec(stmt).all())

    def create(self, session: Session, city: City) -> City:
        session.add(city)
        session.commit()
        session.refresh(city)
        return city

    def update(self, session: Session, city: City) -> City:
        session.add(city)
        session.commit()
        session.refresh(city)
        return city

    def delete(self, session: Session, city: City) -> None:
        session.delete(city)
        session.commit()
