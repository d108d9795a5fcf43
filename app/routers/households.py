from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from app.routers.deps import get_actor, get_registry
from app.schemas.households import (
    HouseholdCreate,
    HouseholdOut,
    HouseholdUpdate,
    MembershipCreate,
    MembershipOut,
    MembershipUpdate,
)
from app.services.registry import RegistryService
from civreg.context import ActorContext

router = APIRouter(prefix="/v1", tags=["households"])


@router.post("/households", response_model=HouseholdOut, status_code=status.HTTP_201_CREATED)
def create_household(
    payload: HouseholdCreate,
    actor: ActorContext = Depends(get_actor),
    registry: RegistryService = Depends(get_registry),
):
    """Allocate a household code and register the dwelling unit."""

    household = registry.create_household(actor, **payload.model_dump(exclude_unset=True))
    return HouseholdOut.model_validate(household)


@router.get("/households/by-code/{code}", response_model=HouseholdOut)
def get_household_by_code(code: str, registry: RegistryService = Depends(get_registry)):
    return HouseholdOut.model_validate(registry.get_household_by_code(code))


@router.get("/households/{household_id}", response_model=HouseholdOut)
def get_household(household_id: int, registry: RegistryService = Depends(get_registry)):
    return HouseholdOut.model_validate(registry.get_household(household_id))


@router.patch("/households/{household_id}", response_model=HouseholdOut)
def update_household(
    household_id: int,
    payload: HouseholdUpdate,
    actor: ActorContext = Depends(get_actor),
    registry: RegistryService = Depends(get_registry),
):
    household = registry.update_household(
        actor, household_id, **payload.model_dump(exclude_unset=True)
    )
    return HouseholdOut.model_validate(household)


@router.post("/households/{household_id}/recompute", response_model=HouseholdOut)
def recompute_household(
    household_id: int,
    actor: ActorContext = Depends(get_actor),
    registry: RegistryService = Depends(get_registry),
):
    return HouseholdOut.model_validate(registry.recompute_household(actor, household_id))


@router.get("/households/{household_id}/members", response_model=list[MembershipOut])
def list_members(
    household_id: int,
    include_inactive: bool = Query(default=False),
    registry: RegistryService = Depends(get_registry),
):
    members = registry.list_members(household_id, include_inactive=include_inactive)
    return [MembershipOut.model_validate(member) for member in members]


@router.post(
    "/households/{household_id}/members",
    response_model=MembershipOut,
    status_code=status.HTTP_201_CREATED,
)
def add_member(
    household_id: int,
    payload: MembershipCreate,
    actor: ActorContext = Depends(get_actor),
    registry: RegistryService = Depends(get_registry),
):
    fields = payload.model_dump(exclude_unset=True)
    resident_id = fields.pop("resident_id")
    membership = registry.add_membership(actor, household_id, resident_id, **fields)
    return MembershipOut.model_validate(membership)


@router.get("/memberships/{membership_id}", response_model=MembershipOut)
def get_membership(membership_id: int, registry: RegistryService = Depends(get_registry)):
    return MembershipOut.model_validate(registry.get_membership(membership_id))


@router.patch("/memberships/{membership_id}", response_model=MembershipOut)
def update_membership(
    membership_id: int,
    payload: MembershipUpdate,
    actor: ActorContext = Depends(get_actor),
    registry: RegistryService = Depends(get_registry),
):
    membership = registry.update_membership(
        actor, membership_id, **payload.model_dump(exclude_unset=True)
    )
    return MembershipOut.model_validate(membership)


@router.delete("/memberships/{membership_id}", response_model=MembershipOut)
def remove_membership(
    membership_id: int,
    actor: ActorContext = Depends(get_actor),
    registry: RegistryService = Depends(get_registry),
):
    """Deactivate the membership; the row is kept for history."""

    return MembershipOut.model_validate(registry.remove_membership(actor, membership_id))


__all__ = ["router"]
