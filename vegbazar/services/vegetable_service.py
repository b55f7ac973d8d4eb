# vegbazar/services/vegetable_service.py
import logging
import re
import uuid

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from vegbazar.models.vegetable import OUT_OF_STOCK_THRESHOLD_KG, Vegetable
from vegbazar.repositories.vegetable_repo import VegetableRepository
from vegbazar.schemas.vegetable import StockAdjust, VegetableCreate, VegetableUpdate

logger = logging.getLogger(__name__)

# Pack price as a fraction of the 1 kg price.
PACK_PRICE_RATIOS = {"500g": 0.54, "250g": 0.32, "100g": 0.12}
MARKET_PACK_PRICE_RATIOS = {"500g": 0.60, "250g": 0.40, "100g": 0.20}


def derive_pack_prices(price_1kg: int, ratios: dict[str, float]) -> dict[str, int]:
    """
    Smaller pack prices from the 1 kg price, truncated to whole rupees.
    Never below 1, so a cheap item still has a sellable pack price.

    derive_pack_prices(100, PACK_PRICE_RATIOS)
    -> {"500g": 54, "250g": 32, "100g": 12}
    """
    # Nudge before truncating so 100 * 0.12 can never land on 11.999...
    return {
        size: max(1, int(price_1kg * ratio + 1e-9)) for size, ratio in ratios.items()
    }


def is_out_of_stock(stock_kg: float) -> bool:
    return stock_kg < OUT_OF_STOCK_THRESHOLD_KG


class VegetableService:
    """
    Business logic for Vegetable.

    Responsibilities:
      - slug generation & uniqueness
      - pack-price derivation from the 1 kg price
      - keeping out_of_stock in line with stock_kg
      - admin-only operations (enforced at router via require_admin)
    """

    def __init__(self, repo: VegetableRepository):
        self.repo = repo

    # ----- Helpers -----

    @staticmethod
    def _slugify(raw: str) -> str:
        """
        Basic slugification:
          - lowercase
          - non-alphanumeric -> '-'
          - collapse multiple '-'
          - strip leading/trailing '-'
        """
        value = raw.strip().lower()
        value = re.sub(r"[^a-z0-9]+", "-", value)
        value = value.strip("-")
        return value or "vegetable"

    def _ensure_unique_slug(self, session: Session, base_slug: str) -> str:
        """
        Ensure slug is unique by appending -2, -3, ... if needed.
        """
        slug = base_slug
        i = 2
        while self.repo.get_by_slug(session, slug) is not None:
            slug = f"{base_slug}-{i}"
            i += 1
        return slug

    @staticmethod
    def _fill_prices(values: dict, prefix: str, ratios: dict[str, float]) -> None:
        """Fill missing `<prefix>_<size>` keys from `<prefix>_1kg`."""
        derived = derive_pack_prices(values[f"{prefix}_1kg"], ratios)
        for size, price in derived.items():
            if values.get(f"{prefix}_{size}") is None:
                values[f"{prefix}_{size}"] = price

    def _save(self, session: Session, vegetable: Vegetable, create: bool = False) -> Vegetable:
        """
        Persist a vegetable.

        Two writers can pick the same free slug; the unique index wins and
        the loser gets a 409 instead of a 500.
        """
        try:
            if create:
                return self.repo.create(session, vegetable)
            return self.repo.update(session, vegetable)
        except IntegrityError:
            session.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Vegetable slug already exists",
            )

    # ----- Queries -----

    def list_vegetables(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        in_stock: bool | None = None,
        featured: bool | None = None,
        search: str | None = None,
        sort: str = "newest",
        descending: bool | None = None,
    ) -> tuple[list[Vegetable], int]:
        return self.repo.list(
            session,
            skip=skip,
            limit=limit,
            in_stock=in_stock,
            featured=featured,
            search=search,
            sort=sort,
            descending=descending,
        )

    def get_vegetable(self, session: Session, vegetable_id: uuid.UUID) -> Vegetable:
        vegetable = self.repo.get_by_id(session, vegetable_id)
        if not vegetable:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Vegetable not found",
            )
        return vegetable

    # ----- Admin operations -----

    def create_vegetable(self, session: Session, payload: VegetableCreate) -> Vegetable:
        """
        Create a vegetable with a unique slug and a full price table.
        """
        values = payload.model_dump(exclude={"slug"})
        self._fill_prices(values, "price", PACK_PRICE_RATIOS)
        self._fill_prices(values, "market_price", MARKET_PACK_PRICE_RATIOS)

        base_slug = self._slugify(payload.slug or payload.name)
        vegetable = Vegetable(
            **values,
            slug=self._ensure_unique_slug(session, base_slug),
            out_of_stock=is_out_of_stock(payload.stock_kg),
        )
        vegetable = self._save(session, vegetable, create=True)
        logger.info("Created vegetable %s (%s)", vegetable.id, vegetable.slug)
        return vegetable

    def update_vegetable(
        self,
        session: Session,
        vegetable_id: uuid.UUID,
        payload: VegetableUpdate,
    ) -> Vegetable:
        """
        Partial update.

        - If slug is changed, enforce uniqueness.
        - A new 1 kg price re-derives the pack prices not sent alongside it.
        """
        vegetable = self.get_vegetable(session, vegetable_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)

        slug = changes.pop("slug", None)
        if slug is not None:
            new_base_slug = self._slugify(slug)
            if new_base_slug != vegetable.slug:
                vegetable.slug = self._ensure_unique_slug(session, new_base_slug)

        if "price_1kg" in changes:
            self._fill_prices(changes, "price", PACK_PRICE_RATIOS)
        if "market_price_1kg" in changes:
            self._fill_prices(changes, "market_price", MARKET_PACK_PRICE_RATIOS)

        for field, value in changes.items():
            setattr(vegetable, field, value)
        vegetable.out_of_stock = is_out_of_stock(vegetable.stock_kg)

        return self._save(session, vegetable)

    def adjust_stock(
        self,
        session: Session,
        vegetable_id: uuid.UUID,
        payload: StockAdjust,
    ) -> Vegetable:
        """
        Add (or with a negative delta, remove) stock.

        Raises:
            HTTPException(400): if the result would be negative.
        """
        vegetable = self.get_vegetable(session, vegetable_id)
        if not self.repo.adjust_stock(session, vegetable, payload.delta_kg):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "message": "Insufficient stock",
                    "stock_kg": vegetable.stock_kg,
                },
            )
        return vegetable

    def delete_vegetable(self, session: Session, vegetable_id: uuid.UUID) -> None:
        vegetable = self.get_vegetable(session, vegetable_id)
        self.repo.delete(session, vegetable)
