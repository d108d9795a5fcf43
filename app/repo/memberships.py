from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import HouseholdMember, Resident
from app.repo.base import BaseRepo


class MembershipRepo(BaseRepo[HouseholdMember]):
    """Repository helpers for :class:`~app.db.models.HouseholdMember`."""

    def __init__(self) -> None:
        super().__init__(HouseholdMember)

    def active_for_resident(
        self, db: Session, resident_id: int, *, for_update: bool = False
    ) -> HouseholdMember | None:
        stmt = select(self.model).where(
            self.model.resident_id == resident_id, self.model.is_active.is_(True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return db.execute(stmt).scalar_one_or_none()

    def household_id_of(self, db: Session, membership_id: int) -> int | None:
        stmt = select(self.model.household_id).where(self.model.id == membership_id)
        return db.execute(stmt).scalar_one_or_none()

    def list_for_household(
        self, db: Session, household_id: int, *, include_inactive: bool = False
    ) -> list[HouseholdMember]:
        stmt = select(self.model).where(self.model.household_id == household_id)
        if not include_inactive:
            stmt = stmt.where(self.model.is_active.is_(True))
        return list(db.execute(stmt.order_by(self.model.id)).scalars())

    def active_residents(self, db: Session, household_id: int) -> list[Resident]:
        """Residents holding an active membership in ``household_id``."""

        stmt = (
            select(Resident)
            .join(self.model, self.model.resident_id == Resident.id)
            .where(self.model.household_id == household_id, self.model.is_active.is_(True))
            .order_by(self.model.id)
        )
        return list(db.execute(stmt).scalars())


__all__ = ["MembershipRepo"]
