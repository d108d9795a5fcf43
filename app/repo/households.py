from __future__ import annotations

from typing import Sequence

from sqlalchemy import and_, exists, func, select
from sqlalchemy.orm import Session

from app.db.models import Household, HouseholdMember, Resident
from app.repo.base import BaseRepo
from app.repo.residents import jurisdiction_clause


class HouseholdRepo(BaseRepo[Household]):
    """Repository helpers for :class:`~app.db.models.Household`."""

    def __init__(self) -> None:
        super().__init__(Household)

    def get_by_code(self, db: Session, code: str) -> Household | None:
        stmt = select(self.model).where(self.model.code == code)
        return db.execute(stmt).scalar_one_or_none()

    def max_house_seq(
        self,
        db: Session,
        barangay_code: str,
        subdivision_id: int | None,
        street_id: int | None,
    ) -> int:
        conditions = [self.model.barangay_code == barangay_code]
        conditions.append(
            self.model.subdivision_id.is_(None)
            if subdivision_id is None
            else self.model.subdivision_id == subdivision_id
        )
        conditions.append(
            self.model.street_id.is_(None)
            if street_id is None
            else self.model.street_id == street_id
        )
        stmt = select(func.max(self.model.house_seq)).where(and_(*conditions))
        return int(db.execute(stmt).scalar() or 0)

    def search_by_member_flags(
        self,
        db: Session,
        *,
        jurisdiction: str,
        flags: Sequence[str],
        limit: int = 100,
        offset: int = 0,
    ) -> list[Household]:
        """Households in ``jurisdiction`` with at least one active member carrying every flag."""

        member_conditions = [
            HouseholdMember.household_id == self.model.id,
            HouseholdMember.is_active.is_(True),
            Resident.is_active.is_(True),
        ]
        for flag in flags:
            member_conditions.append(getattr(Resident, flag).is_(True))
        has_member = exists(
            select(HouseholdMember.id)
            .join(Resident, Resident.id == HouseholdMember.resident_id)
            .where(and_(*member_conditions))
        )
        stmt = (
            select(self.model)
            .where(
                jurisdiction_clause(self.model, jurisdiction),
                self.model.is_active.is_(True),
                has_member,
            )
            .order_by(self.model.id)
            .offset(offset)
            .limit(limit)
        )
        return list(db.execute(stmt).scalars())


__all__ = ["HouseholdRepo"]
