from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from civreg.enums import AuditOperation


class AuditEntryOut(BaseModel):
    id: int
    table_name: str
    record_id: int
    operation: AuditOperation
    old_values: dict[str, Any] | None
    new_values: dict[str, Any] | None
    user_id: str | None
    barangay_code: str | None
    created_at: datetime

    model_config = {
        "from_attributes": True,
    }


__all__ = ["AuditEntryOut"]
