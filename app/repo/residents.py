from __future__ import annotations

from typing import Sequence

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from app.db.models import Resident
from app.repo.base import BaseRepo


def jurisdiction_clause(model, jurisdiction: str):
    """Match rows whose geographic chain contains ``jurisdiction`` at any level."""

    return or_(
        model.barangay_code == jurisdiction,
        model.city_municipality_code == jurisdiction,
        model.province_code == jurisdiction,
        model.region_code == jurisdiction,
    )


class ResidentRepo(BaseRepo[Resident]):
    """Repository helpers for :class:`~app.db.models.Resident`."""

    def __init__(self) -> None:
        super().__init__(Resident)

    def household_id_of(self, db: Session, resident_id: int) -> int | None:
        """Current household of ``resident_id`` read without loading or locking the row."""

        stmt = select(self.model.household_id).where(self.model.id == resident_id)
        return db.execute(stmt).scalar_one_or_none()

    def search_by_flags(
        self,
        db: Session,
        *,
        jurisdiction: str,
        flags: Sequence[str],
        include_inactive: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Resident]:
        conditions = [jurisdiction_clause(self.model, jurisdiction)]
        if not include_inactive:
            conditions.append(self.model.is_active.is_(True))
        for flag in flags:
            conditions.append(getattr(self.model, flag).is_(True))
        stmt = (
            select(self.model)
            .where(and_(*conditions))
            .order_by(self.model.id)
            .offset(offset)
            .limit(limit)
        )
        return list(db.execute(stmt).scalars())


__all__ = ["ResidentRepo", "jurisdiction_clause"]
