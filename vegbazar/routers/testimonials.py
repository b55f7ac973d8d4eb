# vegbazar/routers/testimonials.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from vegbazar.core.auth import require_admin
from vegbazar.database import get_session
from vegbazar.repositories.testimonial_repo import TestimonialRepository
from vegbazar.schemas.common import ApiResponse, Page, api_response
from vegbazar.schemas.testimonial import (
    TestimonialCreate,
    TestimonialModerate,
    TestimonialPublic,
    TestimonialRead,
    TestimonialStats,
)
from vegbazar.services.testimonial_service import TestimonialService

router = APIRouter(prefix="/testimonials", tags=["Testimonials"])

repo = TestimonialRepository()
service = TestimonialService(repo)


def _page(items, total: int, skip: int, limit: int) -> dict:
    return {"items": items, "total": total, "skip": skip, "limit": limit}


# -------- Public endpoints --------


@router.post(
    "",
    response_model=ApiResponse[TestimonialPublic],
    status_code=status.HTTP_201_CREATED,
)
def submit_testimonial(payload: TestimonialCreate, session: Session = Depends(get_session)):
    """Submit a review. It becomes visible after admin approval."""
    testimonial = service.submit(session, payload)
    return api_response(
        TestimonialPublic.model_validate(testimonial),
        "Thank you! Your testimonial has been submitted for review.",
        status.HTTP_201_CREATED,
    )


@router.get("", response_model=ApiResponse[Page[TestimonialPublic]])
def list_published(
    session: Session = Depends(get_session),
    rating: int | None = Query(None, ge=1, le=5),
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
):
    items, total = service.list_published(session, skip, limit, rating=rating)
    return api_response(
        _page([TestimonialPublic.model_validate(t) for t in items], total, skip, limit)
    )


# -------- Admin endpoints --------


@router.get(
    "/admin",
    response_model=ApiResponse[Page[TestimonialRead]],
    dependencies=[Depends(require_admin)],
)
def list_all(
    session: Session = Depends(get_session),
    is_approved: bool | None = None,
    is_published: bool | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
):
    items, total = service.list_all(
        session, skip, limit, is_approved=is_approved, is_published=is_published
    )
    return api_response(
        _page([TestimonialRead.model_validate(t) for t in items], total, skip, limit)
    )


@router.get(
    "/admin/stats",
    response_model=ApiResponse[TestimonialStats],
    dependencies=[Depends(require_admin)],
)
def testimonial_stats(session: Session = Depends(get_session)):
    """Totals, average rating and rating distribution."""
    return api_response(service.stats(session))


@router.get(
    "/admin/{testimonial_id}",
    response_model=ApiResponse[TestimonialRead],
    dependencies=[Depends(require_admin)],
)
def get_testimonial(testimonial_id: uuid.UUID, session: Session = Depends(get_session)):
    return api_response(TestimonialRead.model_validate(service.get(session, testimonial_id)))


@router.patch(
    "/admin/{testimonial_id}",
    response_model=ApiResponse[TestimonialRead],
    dependencies=[Depends(require_admin)],
)
def moderate_testimonial(
    testimonial_id: uuid.UUID,
    payload: TestimonialModerate,
    session: Session = Depends(get_session),
):
    """Approve and/or publish (or withdraw) a testimonial."""
    testimonial = service.moderate(session, testimonial_id, payload)
    return api_response(
        TestimonialRead.model_validate(testimonial), "Testimonial updated successfully"
    )


@router.delete(
    "/admin/{testimonial_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_admin)],
)
def delete_testimonial(testimonial_id: uuid.UUID, session: Session = Depends(get_session)):
    service.delete(session, testimonial_id)
    return api_response(None, "Testimonial deleted successfully")
