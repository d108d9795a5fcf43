"""Append-only access to :class:`~app.db.models.AuditLog`.

There is intentionally no update or delete helper here; audit rows are
written once, inside the transaction of the mutation they describe.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import AuditLog
from civreg.enums import AuditOperation


class AuditRepo:
    model = AuditLog

    def append(
        self,
        db: Session,
        *,
        table_name: str,
        record_id: int,
        operation: AuditOperation,
        old_values: dict[str, Any] | None,
        new_values: dict[str, Any] | None,
        user_id: str | None,
        barangay_code: str | None,
    ) -> AuditLog:
        entry = AuditLog(
            table_name=table_name,
            record_id=record_id,
            operation=operation,
            old_values=old_values,
            new_values=new_values,
            user_id=user_id,
            barangay_code=barangay_code,
        )
        db.add(entry)
        db.flush()
        return entry

    def history(
        self, db: Session, table_name: str, record_id: int, *, limit: int | None = None
    ) -> list[AuditLog]:
        stmt = (
            select(AuditLog)
            .where(AuditLog.table_name == table_name, AuditLog.record_id == record_id)
            .order_by(AuditLog.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(db.execute(stmt).scalars())


__all__ = ["AuditRepo"]
