"""Audit recording for registry mutations.

An :class:`AuditRecorder` lives for exactly one unit of work. Entities are
registered before they are modified (:meth:`AuditRecorder.track`) or right
after they are inserted (:meth:`AuditRecorder.track_new`); :meth:`flush`
then writes one :class:`~app.db.models.AuditLog` row per entity whose stored
state actually changed. Both snapshots are read back from the database so an
entry's ``old_values`` always equals the previous entry's ``new_values``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from app.db.models import (
    AuditLog,
    Household,
    HouseholdMember,
    MigrantInfo,
    Resident,
    _ensure_utc,
)
from app.repo.audit import AuditRepo
from civreg.context import ActorContext
from civreg.enums import AuditOperation
from civreg.errors import ValidationError

LOGGER = logging.getLogger(__name__)

AUDITED_TABLES: dict[str, str] = {
    "resident": Resident.__tablename__,
    "residents": Resident.__tablename__,
    "household": Household.__tablename__,
    "households": Household.__tablename__,
    "membership": HouseholdMember.__tablename__,
    "memberships": HouseholdMember.__tablename__,
    "household_member": HouseholdMember.__tablename__,
    "household_members": HouseholdMember.__tablename__,
    "migrant_info": MigrantInfo.__tablename__,
    "migrant_information": MigrantInfo.__tablename__,
}


def audited_table(entity: str) -> str:
    try:
        return AUDITED_TABLES[entity.strip().lower()]
    except KeyError as exc:
        raise ValidationError(f"Entity {entity!r} is not audited", field="entity") from exc


def _jsonable(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return _ensure_utc(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def snapshot(entity: object) -> dict[str, Any]:
    """Column values of ``entity`` as JSON-compatible primitives."""

    mapper = inspect(entity).mapper
    return {attr.key: _jsonable(getattr(entity, attr.key)) for attr in mapper.column_attrs}


@dataclass
class _Tracked:
    entity: Any
    before: dict[str, Any] | None


class AuditRecorder:
    def __init__(self, db: Session, actor: ActorContext, repo: AuditRepo | None = None) -> None:
        self.db = db
        self.actor = actor
        self.repo = repo or AuditRepo()
        self._tracked: dict[tuple[str, int], _Tracked] = {}

    @staticmethod
    def _key(entity: Any) -> tuple[str, int]:
        if entity.id is None:
            raise RuntimeError(f"{type(entity).__name__} must be flushed before it is tracked")
        return entity.__tablename__, entity.id

    def track(self, entity: Any) -> Any:
        """Capture the stored state of ``entity`` the first time it is touched."""

        key = self._key(entity)
        if key not in self._tracked:
            self._tracked[key] = _Tracked(entity=entity, before=snapshot(entity))
        return entity

    def track_new(self, entity: Any) -> Any:
        self._tracked[self._key(entity)] = _Tracked(entity=entity, before=None)
        return entity

    def changed(self) -> list[Any]:
        """Previously stored entities whose state now differs from their snapshot."""

        self.db.flush()
        entities: list[Any] = []
        for tracked in self._tracked.values():
            if tracked.before is None:
                continue
            self.db.refresh(tracked.entity)
            if snapshot(tracked.entity) != tracked.before:
                entities.append(tracked.entity)
        return entities

    def _jurisdiction(self, entity: Any) -> str | None:
        code = getattr(entity, "barangay_code", None)
        if code:
            return code
        if isinstance(entity, HouseholdMember):
            household = self.db.get(Household, entity.household_id)
            if household is not None:
                return household.barangay_code
        if isinstance(entity, MigrantInfo):
            resident = self.db.get(Resident, entity.resident_id)
            if resident is not None:
                return resident.barangay_code
        return self.actor.jurisdiction

    def flush(self) -> list[AuditLog]:
        """Write one entry per changed entity and reset the tracker."""

        self.db.flush()
        entries: list[AuditLog] = []
        for (table_name, record_id), tracked in self._tracked.items():
            self.db.refresh(tracked.entity)
            after = snapshot(tracked.entity)
            before = tracked.before
            if before is None:
                operation = AuditOperation.create
            elif after == before:
                continue
            elif before.get("is_active") and not after.get("is_active"):
                operation = AuditOperation.deactivate
            else:
                operation = AuditOperation.update
            entries.append(
                self.repo.append(
                    self.db,
                    table_name=table_name,
                    record_id=record_id,
                    operation=operation,
                    old_values=before,
                    new_values=after,
                    user_id=self.actor.user_id,
                    barangay_code=self._jurisdiction(tracked.entity),
                )
            )
        self._tracked.clear()
        if entries:
            LOGGER.debug(
                "audit.entries.written",
                extra={"count": len(entries), "user_id": self.actor.user_id},
            )
        return entries


__all__ = ["AUDITED_TABLES", "AuditRecorder", "audited_table", "snapshot"]
