# vegbazar/services/city_service.py
import uuid

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from vegbazar.models.city import City
from vegbazar.repositories.city_repo import CityRepository
from vegbazar.schemas.city import CityCreate, CityUpdate


class CityService:
    """
    Business logic for City.

    City names are unique (case-insensitive).
    """

    def __init__(self, repo: CityRepository):
        self.repo = repo

    def _ensure_name_free(self, session: Session, name: str, exclude_id: uuid.UUID | None = None) -> None:
        existing = self.repo.get_by_name(session, name)
        if existing is not None and existing.id != exclude_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="City already exists",
            )

    def _save(self, session: Session, city: City, create: bool) -> City:
        try:
            return self.repo.create(session, city) if create else self.repo.update(session, city)
        except IntegrityError:
            session.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="City already exists",
            )

    def list_cities(self, session: Session) -> list[City]:
        return self.repo.list(session)

    def get_city(self, session: Session, city_id: uuid.UUID) -> City:
        city = self.repo.get_by_id(session, city_id)
        if not city:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="City not found",
            )
        return city

    def create_city(self, session: Session, payload: CityCreate) -> City:
        self._ensure_name_free(session, payload.name)
        return self._save(session, City(name=payload.name, areas=payload.areas), create=True)

    def update_city(self, session: Session, city_id: uuid.UUID, payload: CityUpdate) -> City:
        city = self.get_city(session, city_id)

        if payload.name is not None and payload.name != city.name:
            self._ensure_name_free(session, payload.name, exclude_id=city.id)
            city.name = payload.name

        if payload.areas is not None:
            city.areas = payload.areas

        return self._save(session, city, create=False)

    def delete_city(self, session: Session, city_id: uuid.UUID) -> None:
        city = self.get_city(session, city_id)
        self.repo.delete(session, city)
