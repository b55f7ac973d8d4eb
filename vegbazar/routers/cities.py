# vegbazar/routers/cities.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from vegbazar.core.auth import require_admin
from vegbazar.database import get_session
from vegbazar.repositories.city_repo import CityRepository
from vegbazar.schemas.city import CityCreate, CityRead, CityUpdate
from vegbazar.schemas.common import ApiResponse, api_response
from vegbazar.services.city_service import CityService

router = APIRouter(prefix="/cities", tags=["Cities"])

repo = CityRepository()
service = CityService(repo)


@router.get("", response_model=ApiResponse[list[CityRead]])
def list_cities(session: Session = Depends(get_session)):
    """Delivery cities, newest first (public)."""
    cities = [CityRead.model_validate(c) for c in service.list_cities(session)]
    return api_response(cities, "Cities fetched successfully")


@router.post(
    "",
    response_model=ApiResponse[CityRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_city(payload: CityCreate, session: Session = Depends(get_session)):
    city = service.create_city(session, payload)
    return api_response(
        CityRead.model_validate(city), "City added successfully", status.HTTP_201_CREATED
    )


@router.patch(
    "/{city_id}",
    response_model=ApiResponse[CityRead],
    dependencies=[Depends(require_admin)],
)
def update_city(city_id: uuid.UUID, payload: CityUpdate, session: Session = Depends(get_session)):
    """Rename a city and/or replace its list of areas (admin only)."""
    city = service.update_city(session, city_id, payload)
    return api_response(CityRead.model_validate(city), "City updated successfully")


@router.delete(
    "/{city_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_admin)],
)
def delete_city(city_id: uuid.UUID, session: Session = Depends(get_session)):
    service.delete_city(session, city_id)
    return api_response(None, "City deleted successfully")
