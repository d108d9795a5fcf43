from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import MigrantInfo
from app.repo.base import BaseRepo


class MigrantInfoRepo(BaseRepo[MigrantInfo]):
    """Repository helpers for :class:`~app.db.models.MigrantInfo`."""

    def __init__(self) -> None:
        super().__init__(MigrantInfo)

    def for_resident(
        self, db: Session, resident_id: int, *, for_update: bool = False
    ) -> MigrantInfo | None:
        """The resident's record, active or not."""

        stmt = select(self.model).where(self.model.resident_id == resident_id)
        if for_update:
            stmt = stmt.with_for_update()
        return db.execute(stmt).scalar_one_or_none()


__all__ = ["MigrantInfoRepo"]
