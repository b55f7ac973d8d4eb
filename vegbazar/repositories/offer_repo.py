# vegbazar/repositories/offer_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import update
from sqlmodel import Session, select

from vegbazar.models.offer import Offer
from vegbazar.models.vegetable import Vegetable


class OfferRepository:
    """Data access layer for Offer."""

    def get_by_id(self, session: Session, offer_id: uuid.UUID) -> Offer | None:
        return session.get(Offer, offer_id)

    def existing_vegetable_ids(
        self, session: Session, vegetable_ids: list[uuid.UUID]
    ) -> set[uuid.UUID]:
        if not vegetable_ids:
            return set()
        stmt = select(Vegetable.id).where(Vegetable.id.in_(vegetable_ids))
        return set(session.exec(stmt).all())

    def list(self, session: Session) -> list[Offer]:
        stmt = select(Offer).order_by(Offer.created_at.desc())
        return list(session.exec(stmt).all())

    def create(self, session: Session, offer: Offer) -> Offer:
        session.add(offer)
        session.commit()
        session.refresh(offer)
        return offer

    def update(self, session: Session, offer: Offer) -> Offer:
        offer.updated_at = datetime.now(timezone.utc)
        session.add(offer)
        session.commit()
        session.refresh(offer)
        return offer

    def delete(self, session: Session, offer: Offer) -> None:
        session.delete(offer)
        session.commit()

    def record_click(self, session: Session, offer: Offer) -> Offer:
        """Increment click_count in SQL so concurrent clicks are all counted."""
        session.exec(
            update(Offer)
            .where(Offer.id == offer.id)
            .values(click_count=Offer.click_count + 1)
        )
        session.commit()
        session.refresh(offer)
        return offer
