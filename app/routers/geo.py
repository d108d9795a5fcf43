from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from app.routers.deps import get_actor, get_registry
from app.schemas.geo import (
    BarangayChainOut,
    OccupationOut,
    StreetCreate,
    StreetOut,
    SubdivisionCreate,
    SubdivisionOut,
)
from app.services.registry import RegistryService
from civreg.context import ActorContext

router = APIRouter(prefix="/v1", tags=["geography"])


@router.get("/geo/barangays/{code}", response_model=BarangayChainOut)
def resolve_barangay(code: str, registry: RegistryService = Depends(get_registry)):
    """Region, province and city/municipality above a barangay code."""

    return BarangayChainOut.model_validate(registry.resolve_chain(code))


@router.get("/geo/subdivisions", response_model=list[SubdivisionOut])
def list_subdivisions(
    barangay_code: str = Query(min_length=9, max_length=9),
    registry: RegistryService = Depends(get_registry),
):
    return [SubdivisionOut.model_validate(row) for row in registry.list_subdivisions(barangay_code)]


@router.post(
    "/geo/subdivisions", response_model=SubdivisionOut, status_code=status.HTTP_201_CREATED
)
def register_subdivision(
    payload: SubdivisionCreate,
    actor: ActorContext = Depends(get_actor),
    registry: RegistryService = Depends(get_registry),
):
    subdivision = registry.register_subdivision(actor, **payload.model_dump())
    return SubdivisionOut.model_validate(subdivision)


@router.get("/geo/streets", response_model=list[StreetOut])
def list_streets(
    barangay_code: str = Query(min_length=9, max_length=9),
    subdivision_id: int | None = Query(default=None),
    registry: RegistryService = Depends(get_registry),
):
    streets = registry.list_streets(barangay_code, subdivision_id)
    return [StreetOut.model_validate(row) for row in streets]


@router.post("/geo/streets", response_model=StreetOut, status_code=status.HTTP_201_CREATED)
def register_street(
    payload: StreetCreate,
    actor: ActorContext = Depends(get_actor),
    registry: RegistryService = Depends(get_registry),
):
    return StreetOut.model_validate(registry.register_street(actor, **payload.model_dump()))


@router.get("/occupations", response_model=list[OccupationOut])
def search_occupations(
    q: str = Query(default="", max_length=100),
    limit: int = Query(default=20, ge=1, le=200),
    registry: RegistryService = Depends(get_registry),
):
    """PSOC occupations whose title contains ``q`` or whose code starts with it."""

    return [OccupationOut.model_validate(row) for row in registry.search_occupations(q, limit=limit)]


@router.get("/occupations/{code}", response_model=OccupationOut)
def get_occupation(code: str, registry: RegistryService = Depends(get_registry)):
    return OccupationOut.model_validate(registry.lookup_occupation(code))


__all__ = ["router"]
