from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.routers.deps import get_registry
from app.schemas.audit import AuditEntryOut
from app.services.registry import RegistryService

router = APIRouter(prefix="/v1", tags=["audit"])


@router.get("/audit/{entity}/{record_id}", response_model=list[AuditEntryOut])
def audit_history(
    entity: str,
    record_id: int,
    limit: int | None = Query(default=None, ge=1, le=1000),
    registry: RegistryService = Depends(get_registry),
):
    """Audit entries for one audited record, oldest first."""

    entries = registry.get_audit_history(entity, record_id, limit=limit)
    return [AuditEntryOut.model_validate(entry) for entry in entries]


__all__ = ["router"]
