# vegbazar/repositories/coupon_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import func
from sqlmodel import Session, select

from vegbazar.models.coupon import Coupon


class CouponRepository:
    """Data access layer for Coupon."""

    def get_by_id(self, session: Session, coupon_id: uuid.UUID) -> Coupon | None:
        return session.get(Coupon, coupon_id)

    def get_by_code(self, session: Session, code: str, active_only: bool = False) -> Coupon | None:
        """`code` must already be uppercase."""
        stmt = select(Coupon).where(Coupon.code == code)
        if active_only:
            stmt = stmt.where(Coupon.is_active == True)  # noqa: E712
        return session.exec(stmt).first()

    def list(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 20,
        is_active: bool | None = None,
    ) -> tuple[list[Coupon], int]:
        filters = []
        if is_active is not None:
            filters.append(Coupon.is_active == is_active)

        stmt = (
            select(Coupon)
            .where(*filters)
            .order_by(Coupon.created_at.desc(), Coupon.id)
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(Coupon).where(*filters)
        return list(session.exec(stmt).all()), session.exec(count_stmt).one()

    def create(self, session: Session, coupon: Coupon) -> Coupon:
        session.add(coupon)
        session.commit()
        session.refresh(coupon)
        return coupon

    def update(self, session: Session, coupon: Coupon) -> Coupon:
        coupon.updated_at = datetime.now(timezone.utc)
        session.add(coupon)
        session.commit()
        session.refresh(coupon)
        return coupon

    def delete(self, session: Session, coupon: Coupon) -> None:
        session.delete(coupon)
        session.commit()
