# vegbazar/repositories/testimonial_repo.py
import uuid

from sqlalchemy import case, func
from sqlmodel import Session, select

from vegbazar.models.testimonial import Testimonial


class TestimonialRepository:
    """
    Data access layer for Testimonial, including the read-only
    aggregates behind the admin stats endpoint.
    """

    def get_by_id(self, session: Session, testimonial_id: uuid.UUID) -> Testimonial | None:
        return session.get(Testimonial, testimonial_id)

    # ----- Aggregates -----

    def totals(self, session: Session) -> tuple[int, int, int, float | None]:
        """(total, approved, published, average rating or None when empty)."""
        stmt = select(
            func.count(Testimonial.id),
            func.coalesce(func.sum(case((Testimonial.is_approved == True, 1), else_=0)), 0),  # noqa: E712
            func.coalesce(func.sum(case((Testimonial.is_published == True, 1), else_=0)), 0),  # noqa: E712
            func.avg(Testimonial.rating),
        )
        total, approved, published, average = session.exec(stmt).one()
        return (
            int(total or 0),
            int(approved or 0),
            int(published or 0),
            float(average) if average is not None else None,
        )

    def rating_distribution(self, session: Session) -> list[tuple[int, int]]:
        """(rating, count) pairs, highest rating first."""
        stmt = (
            select(Testimonial.rating, func.count(Testimonial.id))
            .group_by(Testimonial.rating)
            .order_by(Testimonial.rating.desc())
        )
        return [(int(r), int(c)) for r, c in session.exec(stmt).all()]

    # ----- CRUD -----

    def list(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 10,
        is_approved: bool | None = None,
        is_published: bool | None = None,
        rating: int | None = None,
    ) -> tuple[list[Testimonial], int]:
        filters = []
        if is_approved is not None:
            filters.append(Testimonial.is_approved == is_approved)
        if is_published is not None:
            filters.append(Testimonial.is_published == is_published)
        if rating is not None:
            filters.append(Testimonial.rating == rating)

        stmt = (
            select(Testimonial)
            .where(*filters)
            .order_by(Testimonial.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(Testimonial).where(*filters)
        return list(session.exec(stmt).all()), session.exec(count_stmt).one()

    def create(self, session: Session, testimonial: Testimonial) -> Testimonial:
        session.add(testimonial)
        session.commit()
        session.refresh(testimonial)
        return testimonial

    def update(self, session: Session, testimonial: Testimonial) -> Testimonial:
        session.add(testimonial)
        session.commit()
        session.refresh(testimonial)
        return testimonial

    def delete(self, session: Session, testimonial: Testimonial) -> None:
        session.delete(testimonial)
        session.commit()
