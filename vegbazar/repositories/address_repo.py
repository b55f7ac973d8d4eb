# vegbazar/repositories/address_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import func, update
from sqlmodel import Session, select

from vegbazar.models.address import Address


class AddressRepository:
    """
    Data access layer for Address.

    Every lookup is scoped to the owning user.
    """

    def get_for_user(
        self, session: Session, user_id: uuid.UUID, address_id: uuid.UUID
    ) -> Address | None:
        stmt = select(Address).where(Address.id == address_id, Address.user_id == user_id)
        return session.exec(stmt).first()

    def find_similar(
        self, session: Session, user_id: uuid.UUID, street: str, city: str, pincode: str
    ) -> Address | None:
        """Same street and city (case-insensitive) and pincode."""
        stmt = select(Address).where(
            Address.user_id == user_id,
            func.lower(Address.street) == street.lower(),
            func.lower(Address.city) == city.lower(),
            Address.pincode == pincode,
        )
        return session.exec(stmt).first()

    def count_other_active(
        self, session: Session, user_id: uuid.UUID, address_id: uuid.UUID
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(Address)
            .where(
                Address.user_id == user_id,
                Address.id != address_id,
                Address.is_active == True,  # noqa: E712
            )
        )
        return session.exec(stmt).one()

    def clear_default(self, session: Session, user_id: uuid.UUID) -> None:
        """Unset is_default on every address of the user (no commit)."""
        session.exec(
            update(Address)
            .where(Address.user_id == user_id, Address.is_default == True)  # noqa: E712
            .values(is_default=False)
        )

    def list(
        self,
        session: Session,
        user_id: uuid.UUID,
        type: str | None = None,
        is_active: bool | None = True,
    ) -> list[Address]:
        """Default address first, then newest."""
        filters = [Address.user_id == user_id]
        if type is not None:
            filters.append(Address.type == type)
        if is_active is not None:
            filters.append(Address.is_active == is_active)
        stmt = (
            select(Address)
            .where(*filters)
            .order_by(Address.is_default.desc(), Address.created_at.desc())
        )
        return list(session.exec(stmt).all())

    def create(self, session: Session, address: Address) -> Address:
        session.add(address)
        session.commit()
        session.refresh(address)
        return address

    def update(self, session: Session, address: Address) -> Address:
        address.updated_at = datetime.now(timezone.utc)
        session.add(address)
        session.commit()
        session.refresh(address)
        return address

    def delete(self, session: Session, address: Address) -> None:
        session.delete(address)
        session.commit()
