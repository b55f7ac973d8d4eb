# vegbazar/services/testimonial_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from vegbazar.models.testimonial import Testimonial
from vegbazar.repositories.testimonial_repo import TestimonialRepository
from vegbazar.schemas.testimonial import (
    RatingCount,
    TestimonialCreate,
    TestimonialModerate,
    TestimonialStats,
)

logger = logging.getLogger(__name__)


class TestimonialService:
    def __init__(self, repo: TestimonialRepository):
        self.repo = repo

    def submit(self, session: Session, payload: TestimonialCreate) -> Testimonial:
        testimonial = self.repo.create(session, Testimonial(**payload.model_dump()))
        logger.info("New testimonial %s awaiting moderation", testimonial.id)
        return testimonial

    def list_published(
        self,
        session: Session,
        skip: int,
        limit: int,
        rating: int | None = None,
    ) -> tuple[list[Testimonial], int]:
        """Only approved AND published testimonials are public."""
        return self.repo.list(
            session,
            skip=skip,
            limit=limit,
            is_approved=True,
            is_published=True,
            rating=rating,
        )

    def list_all(
        self,
        session: Session,
        skip: int,
        limit: int,
        is_approved: bool | None = None,
        is_published: bool | None = None,
    ) -> tuple[list[Testimonial], int]:
        return self.repo.list(
            session,
            skip=skip,
            limit=limit,
            is_approved=is_approved,
            is_published=is_published,
        )

    def get(self, session: Session, testimonial_id: uuid.UUID) -> Testimonial:
        testimonial = self.repo.get_by_id(session, testimonial_id)
        if not testimonial:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Testimonial not found",
            )
        return testimonial

    def moderate(
        self,
        session: Session,
        testimonial_id: uuid.UUID,
        payload: TestimonialModerate,
    ) -> Testimonial:
        testimonial = self.get(session, testimonial_id)
        if payload.is_approved is None and payload.is_published is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No fields to update",
            )
        if payload.is_approved is not None:
            testimonial.is_approved = payload.is_approved
        if payload.is_published is not None:
            testimonial.is_published = payload.is_published
        return self.repo.update(session, testimonial)

    def delete(self, session: Session, testimonial_id: uuid.UUID) -> None:
        testimonial = self.get(session, testimonial_id)
        self.repo.delete(session, testimonial)

    def stats(self, session: Session) -> TestimonialStats:
        total, approved, published, average = self.repo.totals(session)
        distribution = [
            RatingCount(rating=rating, count=count)
            for rating, count in self.repo.rating_distribution(session)
        ]
        return TestimonialStats(
            total=total,
            approved=approved,
            published=published,
            average_rating=round(average, 2) if average is not None else None,
            rating_distribution=distribution,
        )
