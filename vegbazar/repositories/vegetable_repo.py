# vegbazar/repositories/vegetable_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import func, update
from sqlmodel import Session, select

from vegbazar.models.vegetable import OUT_OF_STOCK_THRESHOLD_KG, Vegetable

_SORT_COLUMNS = {
    "name": Vegetable.name,
    "price": Vegetable.price_1kg,
    "stock": Vegetable.stock_kg,
    "newest": Vegetable.created_at,
}


class VegetableRepository:
    """
    Data access layer for Vegetable.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, vegetable_id: uuid.UUID) -> Vegetable | None:
        return session.get(Vegetable, vegetable_id)

    def get_by_slug(self, session: Session, slug: str) -> Vegetable | None:
        stmt = select(Vegetable).where(Vegetable.slug == slug)
        return session.exec(stmt).first()

    def list(
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
        """
        Filtered, sorted, paginated listing.

        `descending` defaults to True for "newest" and False otherwise.
        """
        filters = []
        if in_stock is not None:
            filters.append(Vegetable.out_of_stock == (not in_stock))
        if featured is not None:
            filters.append(Vegetable.is_featured == featured)
        if search:
            filters.append(Vegetable.name.ilike(f"%{search.strip()}%"))

        column = _SORT_COLUMNS[sort]
        if descending is None:
            descending = sort == "newest"
        order = column.desc() if descending else column.asc()

        stmt = (
            select(Vegetable)
            .where(*filters)
            .order_by(order, Vegetable.id)
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(Vegetable).where(*filters)
        return list(session.exec(stmt).all()), session.exec(count_stmt).one()

    def create(self, session: Session, vegetable: Vegetable) -> Vegetable:
        session.add(vegetable)
        session.commit()
        session.refresh(vegetable)
        return vegetable

    def update(self, session: Session, vegetable: Vegetable) -> Vegetable:
        vegetable.updated_at = datetime.now(timezone.utc)
        session.add(vegetable)
        session.commit()
        session.refresh(vegetable)
        return vegetable

    def delete(self, session: Session, vegetable: Vegetable) -> None:
        session.delete(vegetable)
        session.commit()

    def adjust_stock(
        self,
        session: Session,
        vegetable: Vegetable,
        delta_kg: float,
    ) -> bool:
        """
        Atomically add `delta_kg` to the stock and recompute out_of_stock.

        The row is only touched when the result stays non-negative.

        Returns:
            True if the row was updated.
        """
        new_stock = Vegetable.stock_kg + delta_kg
        result = session.exec(
            update(Vegetable)
            .where(Vegetable.id == vegetable.id, new_stock >= 0)
            .values(
                stock_kg=new_stock,
                out_of_stock=new_stock < OUT_OF_STOCK_THRESHOLD_KG,
                updated_at=datetime.now(timezone.utc),
            )
        )
        session.commit()
        session.refresh(vegetable)
        return result.rowcount == 1
