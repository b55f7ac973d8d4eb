# vegbazar/services/offer_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from vegbazar.models.offer import Offer
from vegbazar.repositories.offer_repo import OfferRepository
from vegbazar.schemas.offer import OfferCreate, OfferUpdate

logger = logging.getLogger(__name__)


class OfferService:
    """
    Business logic for Offer.

    Every referenced vegetable must exist, and a basket cannot list more
    vegetables than its `vegetable_limit`.
    """

    def __init__(self, repo: OfferRepository):
        self.repo = repo

    def _check_vegetables(
        self, session: Session, vegetable_ids: list[uuid.UUID], limit: int | None
    ) -> list[str]:
        missing = set(vegetable_ids) - self.repo.existing_vegetable_ids(session, vegetable_ids)
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "message": "Unknown vegetable in offer",
                    "vegetable_ids": sorted(str(v) for v in missing),
                },
            )
        if limit is not None and len(vegetable_ids) > limit:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Offer allows at most {limit} vegetables",
            )
        return [str(v) for v in vegetable_ids]

    def list_offers(self, session: Session) -> list[Offer]:
        return self.repo.list(session)

    def get_offer(self, session: Session, offer_id: uuid.UUID) -> Offer:
        offer = self.repo.get_by_id(session, offer_id)
        if not offer:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Offer not found",
            )
        return offer

    def create_offer(self, session: Session, payload: OfferCreate) -> Offer:
        values = payload.model_dump(exclude={"vegetable_ids"})
        values["vegetable_ids"] = self._check_vegetables(
            session, payload.vegetable_ids, payload.vegetable_limit
        )
        offer = self.repo.create(session, Offer(**values))
        logger.info("Created offer %s", offer.id)
        return offer

    def update_offer(self, session: Session, offer_id: uuid.UUID, payload: OfferUpdate) -> Offer:
        offer = self.get_offer(session, offer_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)

        if "vegetable_ids" in changes or "vegetable_limit" in changes:
            ids = payload.vegetable_ids
            if ids is None:
                ids = [uuid.UUID(v) for v in offer.vegetable_ids]
            changes["vegetable_ids"] = self._check_vegetables(
                session, ids, changes.get("vegetable_limit", offer.vegetable_limit)
            )

        for field, value in changes.items():
            setattr(offer, field, value)
        return self.repo.update(session, offer)

    def record_click(self, session: Session, offer_id: uuid.UUID) -> Offer:
        return self.repo.record_click(session, self.get_offer(session, offer_id))

    def delete_offer(self, session: Session, offer_id: uuid.UUID) -> None:
        offer = self.get_offer(session, offer_id)
        self.repo.delete(session, offer)
