from __future__ import annotations

from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, Query

from app.routers.deps import get_registry
from app.schemas.geo import IncomeClassOut
from app.schemas.households import HouseholdOut
from app.schemas.residents import ResidentOut
from app.schemas.search import HouseholdSearchResult, ResidentSearchResult
from app.services.registry import RegistryService

router = APIRouter(prefix="/v1", tags=["search"])


@router.get(
    "/search/classification",
    response_model=ResidentSearchResult | HouseholdSearchResult,
)
def search_by_classification(
    jurisdiction: str = Query(min_length=2, max_length=9),
    flags: list[str] | None = Query(default=None),
    target: Literal["residents", "households"] = Query(default="residents"),
    include_inactive: bool = Query(default=False),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    registry: RegistryService = Depends(get_registry),
):
    """Records inside a PSGC jurisdiction that carry every requested sector flag."""

    rows = registry.search_by_classification(
        jurisdiction,
        flags or (),
        target=target,
        include_inactive=include_inactive,
        limit=limit,
        offset=offset,
    )
    if target == "households":
        items = [HouseholdOut.model_validate(row) for row in rows]
        return HouseholdSearchResult(count=len(items), items=items)
    residents = [ResidentOut.model_validate(row) for row in rows]
    return ResidentSearchResult(count=len(residents), items=residents)


@router.get("/classification/income", response_model=IncomeClassOut)
def classify_income(monthly_income: Decimal = Query(ge=0)):
    return IncomeClassOut(
        monthly_income=monthly_income,
        income_class=RegistryService.classify_income(monthly_income),
    )


__all__ = ["router"]
