from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.routers.deps import get_actor, get_registry
from app.schemas.residents import (
    MigrantInfoIn,
    MigrantInfoOut,
    ResidentCreate,
    ResidentOut,
    ResidentUpdate,
)
from app.services.registry import RegistryService
from civreg.context import ActorContext

router = APIRouter(prefix="/v1", tags=["residents"])


@router.post("/residents", response_model=ResidentOut, status_code=status.HTTP_201_CREATED)
def create_resident(
    payload: ResidentCreate,
    actor: ActorContext = Depends(get_actor),
    registry: RegistryService = Depends(get_registry),
):
    fields = payload.model_dump(exclude_unset=True)
    resident = registry.create_resident(actor, **fields)
    return ResidentOut.model_validate(resident)


@router.get("/residents/{resident_id}", response_model=ResidentOut)
def get_resident(resident_id: int, registry: RegistryService = Depends(get_registry)):
    return ResidentOut.model_validate(registry.get_resident(resident_id))


@router.patch("/residents/{resident_id}", response_model=ResidentOut)
def update_resident(
    resident_id: int,
    payload: ResidentUpdate,
    actor: ActorContext = Depends(get_actor),
    registry: RegistryService = Depends(get_registry),
):
    resident = registry.update_resident(actor, resident_id, **payload.model_dump(exclude_unset=True))
    return ResidentOut.model_validate(resident)


@router.post("/residents/{resident_id}/deactivate", response_model=ResidentOut)
def deactivate_resident(
    resident_id: int,
    actor: ActorContext = Depends(get_actor),
    registry: RegistryService = Depends(get_registry),
):
    """Soft-delete the resident and end any active household membership."""

    return ResidentOut.model_validate(registry.deactivate_resident(actor, resident_id))


@router.get("/residents/{resident_id}/migrant", response_model=MigrantInfoOut)
def get_migrant_info(resident_id: int, registry: RegistryService = Depends(get_registry)):
    return MigrantInfoOut.model_validate(registry.get_migrant_info(resident_id))


@router.put("/residents/{resident_id}/migrant", response_model=MigrantInfoOut)
def record_migrant_info(
    resident_id: int,
    payload: MigrantInfoIn,
    actor: ActorContext = Depends(get_actor),
    registry: RegistryService = Depends(get_registry),
):
    """Record where the resident lived before and mark them as a migrant."""

    record = registry.record_migrant_info(actor, resident_id, **payload.model_dump(exclude_unset=True))
    return MigrantInfoOut.model_validate(record)


@router.delete("/residents/{resident_id}/migrant", response_model=MigrantInfoOut)
def clear_migrant_info(
    resident_id: int,
    actor: ActorContext = Depends(get_actor),
    registry: RegistryService = Depends(get_registry),
):
    return MigrantInfoOut.model_validate(registry.clear_migrant_info(actor, resident_id))


__all__ = ["router"]
