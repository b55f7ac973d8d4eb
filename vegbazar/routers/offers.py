# vegbazar/routers/offers.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from vegbazar.core.auth import require_admin
from vegbazar.database import get_session
from vegbazar.repositories.offer_repo import OfferRepository
from vegbazar.schemas.common import ApiResponse, api_response
from vegbazar.schemas.offer import OfferCreate, OfferRead, OfferUpdate
from vegbazar.services.offer_service import OfferService

router = APIRouter(prefix="/offers", tags=["Offers"])

repo = OfferRepository()
service = OfferService(repo)


@router.get("", response_model=ApiResponse[list[OfferRead]])
def list_offers(session: Session = Depends(get_session)):
    """Offer baskets, newest first (public)."""
    offers = [OfferRead.model_validate(o) for o in service.list_offers(session)]
    return api_response(offers, "Offers fetched successfully")


@router.get("/{offer_id}", response_model=ApiResponse[OfferRead])
def get_offer(offer_id: uuid.UUID, session: Session = Depends(get_session)):
    offer = service.get_offer(session, offer_id)
    return api_response(OfferRead.model_validate(offer), "Offer fetched successfully")


@router.post("/{offer_id}/click", response_model=ApiResponse[OfferRead])
def record_click(offer_id: uuid.UUID, session: Session = Depends(get_session)):
    """Count a shopper opening the offer (public)."""
    offer = service.record_click(session, offer_id)
    return api_response(OfferRead.model_validate(offer), "Click recorded")


@router.post(
    "",
    response_model=ApiResponse[OfferRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_offer(payload: OfferCreate, session: Session = Depends(get_session)):
    offer = service.create_offer(session, payload)
    return api_response(
        OfferRead.model_validate(offer), "Offer added successfully", status.HTTP_201_CREATED
    )


@router.patch(
    "/{offer_id}",
    response_model=ApiResponse[OfferRead],
    dependencies=[Depends(require_admin)],
)
def update_offer(offer_id: uuid.UUID, payload: OfferUpdate, session: Session = Depends(get_session)):
    offer = service.update_offer(session, offer_id, payload)
    return api_response(OfferRead.model_validate(offer), "Offer updated successfully")


@router.delete(
    "/{offer_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_admin)],
)
def delete_offer(offer_id: uuid.UUID, session: Session = Depends(get_session)):
    service.delete_offer(session, offer_id)
    return api_response(None, "Offer deleted successfully")
