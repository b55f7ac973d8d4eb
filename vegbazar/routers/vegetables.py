# vegbazar/routers/vegetables.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from vegbazar.core.auth import require_admin
from vegbazar.database import get_session
from vegbazar.repositories.vegetable_repo import VegetableRepository
from vegbazar.schemas.common import ApiResponse, Page, api_response
from vegbazar.schemas.vegetable import (
    StockAdjust,
    VegetableCreate,
    VegetableRead,
    VegetableSort,
    VegetableUpdate,
)
from vegbazar.services.vegetable_service import VegetableService

router = APIRouter(prefix="/vegetables", tags=["Vegetables"])

repo = VegetableRepository()
service = VegetableService(repo)


# -------- Public endpoints --------


@router.get("", response_model=ApiResponse[Page[VegetableRead]])
def list_vegetables(
    session: Session = Depends(get_session),
    in_stock: bool | None = None,
    featured: bool | None = None,
    search: str | None = Query(None, max_length=100),
    sort: VegetableSort = "newest",
    order: str | None = Query(None, pattern="^(asc|desc)$"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
):
    """
    List vegetables.

    - Public endpoint.
    - `sort`: name | price | stock | newest; `order`: asc | desc.
    """
    descending = None if order is None else order == "desc"
    items, total = service.list_vegetables(
        session,
        skip=skip,
        limit=limit,
        in_stock=in_stock,
        featured=featured,
        search=search,
        sort=sort,
        descending=descending,
    )
    return api_response(
        {
            "items": [VegetableRead.model_validate(v) for v in items],
            "total": total,
            "skip": skip,
            "limit": limit,
        },
        "Vegetables fetched successfully",
    )


@router.get("/{vegetable_id}", response_model=ApiResponse[VegetableRead])
def get_vegetable(vegetable_id: uuid.UUID, session: Session = Depends(get_session)):
    vegetable = service.get_vegetable(session, vegetable_id)
    return api_response(VegetableRead.model_validate(vegetable), "Vegetable fetched successfully")


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=ApiResponse[VegetableRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_vegetable(payload: VegetableCreate, session: Session = Depends(get_session)):
    """
    Create a vegetable (admin only).

    Only the 1 kg prices are required; smaller pack prices are derived.
    """
    vegetable = service.create_vegetable(session, payload)
    return api_response(
        VegetableRead.model_validate(vegetable),
        "Vegetable created successfully",
        status.HTTP_201_CREATED,
    )


@router.patch(
    "/{vegetable_id}",
    response_model=ApiResponse[VegetableRead],
    dependencies=[Depends(require_admin)],
)
def update_vegetable(
    vegetable_id: uuid.UUID,
    payload: VegetableUpdate,
    session: Session = Depends(get_session),
):
    vegetable = service.update_vegetable(session, vegetable_id, payload)
    return api_response(VegetableRead.model_validate(vegetable), "Vegetable updated successfully")


@router.patch(
    "/{vegetable_id}/stock",
    response_model=ApiResponse[VegetableRead],
    dependencies=[Depends(require_admin)],
)
def adjust_stock(
    vegetable_id: uuid.UUID,
    payload: StockAdjust,
    session: Session = Depends(get_session),
):
    """Apply a signed stock change in kg (admin only)."""
    vegetable = service.adjust_stock(session, vegetable_id, payload)
    return api_response(VegetableRead.model_validate(vegetable), "Stock updated")


@router.delete(
    "/{vegetable_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_admin)],
)
def delete_vegetable(vegetable_id: uuid.UUID, session: Session = Depends(get_session)):
    service.delete_vegetable(session, vegetable_id)
    return api_response(None, "Vegetable deleted successfully")
