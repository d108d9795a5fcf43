from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.db.models import Household
from app.repo.catalogs import BarangayChain, GeographyCatalog
from civreg.context import ActorContext
from civreg.errors import NotFoundError, ValidationError
from civreg.identity import parse_leaf_code

LOGGER = logging.getLogger(__name__)

CHAIN_FIELDS = ("barangay_code", "city_municipality_code", "province_code", "region_code")


class GeographyResolver:
    """Populate the region → barangay chain from a single leaf reference."""

    def __init__(self, catalog: GeographyCatalog | None = None) -> None:
        self.catalog = catalog or GeographyCatalog()

    def resolve_chain(self, db: Session, barangay_code: str) -> BarangayChain:
        leaf = parse_leaf_code(barangay_code)
        chain = self.catalog.lookup_barangay(db, leaf.code)
        if chain is None:
            raise NotFoundError(f"Unknown barangay {leaf.code}", field="barangay_code")
        LOGGER.debug(
            "geo.chain.resolved",
            extra={"barangay_code": chain.barangay_code, "independent": chain.is_independent},
        )
        return chain

    def resolve_explicit(
        self, db: Session, barangay_code: str | None, actor: ActorContext
    ) -> BarangayChain:
        code = barangay_code or actor.jurisdiction
        if not code:
            raise ValidationError(
                "A barangay code is required when the operator has no jurisdiction",
                field="barangay_code",
            )
        return self.resolve_chain(db, code)

    def resolve_for_resident(
        self,
        db: Session,
        *,
        household: Household | None,
        barangay_code: str | None,
        actor: ActorContext,
    ) -> dict[str, str | None]:
        """Chain codes for a resident: the household's when it has one."""

        if household is not None:
            return household_chain(household)
        return self.resolve_explicit(db, barangay_code, actor).codes()


def household_chain(household: Household) -> dict[str, str | None]:
    return {field: getattr(household, field) for field in CHAIN_FIELDS}


def apply_chain(target: object, chain: dict[str, str | None]) -> bool:
    """Copy chain codes onto ``target``; return whether anything changed."""

    changed = False
    for field in CHAIN_FIELDS:
        value = chain.get(field)
        if getattr(target, field, None) != value:
            setattr(target, field, value)
            changed = True
    return changed


__all__ = ["CHAIN_FIELDS", "GeographyResolver", "apply_chain", "household_chain"]
