from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from app.schemas.households import HouseholdOut
from app.schemas.residents import ResidentOut


class ResidentSearchResult(BaseModel):
    target: Literal["residents"] = "residents"
    count: int
    items: list[ResidentOut]


class HouseholdSearchResult(BaseModel):
    target: Literal["households"] = "households"
    count: int
    items: list[HouseholdOut]


__all__ = ["HouseholdSearchResult", "ResidentSearchResult"]
