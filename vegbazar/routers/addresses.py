# vegbazar/routers/addresses.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from vegbazar.core.auth import require_customer
from vegbazar.database import get_session
from vegbazar.repositories.address_repo import AddressRepository
from vegbazar.schemas.address import (
    AddressCreate,
    AddressRead,
    AddressType,
    AddressUpdate,
    DeliveryCharges,
)
from vegbazar.schemas.auth import CurrentUser
from vegbazar.schemas.common import ApiResponse, api_response
from vegbazar.services.address_service import AddressService

router = APIRouter(prefix="/addresses", tags=["Addresses"])

repo = AddressRepository()
service = AddressService(repo)


@router.get("", response_model=ApiResponse[list[AddressRead]])
def list_addresses(
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_customer),
    type: AddressType | None = None,
    is_active: bool | None = True,
):
    """The caller's addresses, default first. Inactive ones are hidden unless asked for."""
    addresses = service.list_addresses(session, current_user, type=type, is_active=is_active)
    items = [AddressRead.model_validate(a) for a in addresses]
    return api_response(items, "Addresses retrieved successfully")


@router.get("/{address_id}", response_model=ApiResponse[AddressRead])
def get_address(
    address_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_customer),
):
    address = service.get_address(session, current_user, address_id)
    return api_response(AddressRead.model_validate(address), "Address retrieved successfully")


@router.get("/{address_id}/delivery-charges", response_model=ApiResponse[DeliveryCharges])
def get_delivery_charges(
    address_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_customer),
):
    charges = service.delivery_charges(session, current_user, address_id)
    return api_response(charges, "Delivery charges calculated successfully")


@router.post(
    "",
    response_model=ApiResponse[AddressRead],
    status_code=status.HTTP_201_CREATED,
)
def add_address(
    payload: AddressCreate,
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_customer),
):
    """Save an address; coordinates, when sent, set the distance and delivery charge."""
    address = service.add_address(session, current_user, payload)
    return api_response(
        AddressRead.model_validate(address), "Address added successfully", status.HTTP_201_CREATED
    )


@router.patch("/{address_id}", response_model=ApiResponse[AddressRead])
def update_address(
    address_id: uuid.UUID,
    payload: AddressUpdate,
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_customer),
):
    address = service.update_address(session, current_user, address_id, payload)
    return api_response(AddressRead.model_validate(address), "Address updated successfully")


@router.put("/{address_id}/default", response_model=ApiResponse[AddressRead])
def set_default_address(
    address_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_customer),
):
    address = service.set_default(session, current_user, address_id)
    return api_response(AddressRead.model_validate(address), "Default address set successfully")


@router.delete("/{address_id}", response_model=ApiResponse[None])
def delete_address(
    address_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(require_customer),
):
    service.delete_address(session, current_user, address_id)
    return api_response(None, "Address deleted successfully")
