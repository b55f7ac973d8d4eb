# vegbazar/services/address_service.py
import logging
import math
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from vegbazar.core.config import Settings, get_settings
from vegbazar.models.address import Address
from vegbazar.repositories.address_repo import AddressRepository
from vegbazar.schemas.address import AddressCreate, AddressUpdate
from vegbazar.schemas.auth import CurrentUser

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points, in km."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def delivery_charge(distance_km: float, settings: Settings) -> int:
    """
    Charge in paise for delivering `distance_km` from the center.

    Base charge inside the free radius, plus a per-km rate beyond it,
    clamped to [DELIVERY_MIN_CHARGE, DELIVERY_MAX_CHARGE].
    """
    charge = float(settings.DELIVERY_BASE_CHARGE)
    if distance_km > settings.DELIVERY_FREE_DISTANCE_KM:
        extra_km = distance_km - settings.DELIVERY_FREE_DISTANCE_KM
        charge += extra_km * settings.DELIVERY_PER_KM_CHARGE
    charge = max(settings.DELIVERY_MIN_CHARGE, min(settings.DELIVERY_MAX_CHARGE, charge))
    return int(round(charge))


class AddressService:
    """
    Business logic for a customer's saved addresses.

    Rules:
      - a near-duplicate (street, city, pincode) is rejected
      - making one address default unsets the others
      - the last active address cannot be deleted
    """

    def __init__(self, repo: AddressRepository, settings: Settings | None = None):
        self.repo = repo
        self.settings = settings or get_settings()

    def _locate(self, address: Address) -> None:
        """Recompute distance and charge from the stored coordinates."""
        if address.latitude is None or address.longitude is None:
            address.distance_km = 0
        else:
            address.distance_km = round(
                haversine_km(
                    self.settings.DELIVERY_CENTER_LATITUDE,
                    self.settings.DELIVERY_CENTER_LONGITUDE,
                    address.latitude,
                    address.longitude,
                ),
                2,
            )
        address.delivery_charge = delivery_charge(address.distance_km, self.settings)

    def list_addresses(
        self,
        session: Session,
        current_user: CurrentUser,
        type: str | None = None,
        is_active: bool | None = True,
    ) -> list[Address]:
        return self.repo.list(session, current_user.id, type=type, is_active=is_active)

    def get_address(
        self, session: Session, current_user: CurrentUser, address_id: uuid.UUID
    ) -> Address:
        address = self.repo.get_for_user(session, current_user.id, address_id)
        if not address:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Address not found",
            )
        return address

    def add_address(
        self, session: Session, current_user: CurrentUser, payload: AddressCreate
    ) -> Address:
        similar = self.repo.find_similar(
            session, current_user.id, payload.street, payload.city, payload.pincode
        )
        if similar is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Similar address already exists",
            )

        if payload.is_default:
            self.repo.clear_default(session, current_user.id)

        address = Address(user_id=current_user.id, **payload.model_dump())
        self._locate(address)
        address = self.repo.create(session, address)
        logger.info("User %s added address %s", current_user.id, address.id)
        return address

    def update_address(
        self,
        session: Session,
        current_user: CurrentUser,
        address_id: uuid.UUID,
        payload: AddressUpdate,
    ) -> Address:
        address = self.get_address(session, current_user, address_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No fields to update",
            )

        if changes.get("is_default"):
            self.repo.clear_default(session, current_user.id)

        for field, value in changes.items():
            setattr(address, field, value)
        if "latitude" in changes:
            self._locate(address)
        return self.repo.update(session, address)

    def set_default(
        self, session: Session, current_user: CurrentUser, address_id: uuid.UUID
    ) -> Address:
        address = self.get_address(session, current_user, address_id)
        self.repo.clear_default(session, current_user.id)
        address.is_default = True
        return self.repo.update(session, address)

    def delivery_charges(
        self, session: Session, current_user: CurrentUser, address_id: uuid.UUID
    ) -> dict:
        address = self.get_address(session, current_user, address_id)
        base = self.settings.DELIVERY_BASE_CHARGE
        return {
            "base_charge": base,
            "distance_charge": address.delivery_charge - base,
            "total_charge": address.delivery_charge,
            "distance_km": address.distance_km,
        }

    def delete_address(
        self, session: Session, current_user: CurrentUser, address_id: uuid.UUID
    ) -> None:
        address = self.get_address(session, current_user, address_id)
        if self.repo.count_other_active(session, current_user.id, address.id) == 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete the only active address. Add another address first.",
            )
        self.repo.delete(session, address)
        logger.info("User %s deleted address %s", current_user.id, address_id)
