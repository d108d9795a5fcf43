"""Household code allocation.

Subdivision and street blocks are ranks in creation order within their
scope; the house block comes from an atomic per-scope counter so that
concurrent writers never hand out the same code.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.db.models import GeoStreet, GeoSubdivision
from app.repo.catalogs import StreetRepo, SubdivisionRepo
from app.repo.households import HouseholdRepo
from app.repo.sequences import SequenceRepo
from civreg.errors import ValidationError
from civreg.identity import MAX_SEQUENCE, NO_SEQUENCE, format_household_code, parse_leaf_code

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodeAllocation:
    code: str
    barangay_code: str
    subdivision_id: int | None
    street_id: int | None
    subdivision_seq: int
    street_seq: int
    house_seq: int


class IdentityAllocator:
    def __init__(
        self,
        *,
        subdivisions: SubdivisionRepo | None = None,
        streets: StreetRepo | None = None,
        households: HouseholdRepo | None = None,
        sequences: SequenceRepo | None = None,
    ) -> None:
        self.subdivisions = subdivisions or SubdivisionRepo()
        self.streets = streets or StreetRepo()
        self.households = households or HouseholdRepo()
        self.sequences = sequences or SequenceRepo()

    def resolve_subdivision(
        self, db: Session, barangay_code: str, subdivision_id: int | None
    ) -> GeoSubdivision | None:
        if subdivision_id is None:
            return None
        subdivision = self.subdivisions.require(db, subdivision_id, field="subdivision_id")
        if subdivision.barangay_code != barangay_code:
            raise ValidationError(
                f"Subdivision {subdivision_id} belongs to barangay {subdivision.barangay_code}, "
                f"not {barangay_code}",
                field="subdivision_id",
            )
        return subdivision

    def resolve_street(
        self,
        db: Session,
        barangay_code: str,
        subdivision_id: int | None,
        street_id: int | None,
    ) -> GeoStreet | None:
        if street_id is None:
            return None
        street = self.streets.require(db, street_id, field="street_id")
        if street.barangay_code != barangay_code:
            raise ValidationError(
                f"Street {street_id} belongs to barangay {street.barangay_code}, not {barangay_code}",
                field="street_id",
            )
        if street.subdivision_id != subdivision_id:
            raise ValidationError(
                f"Street {street_id} is not registered under subdivision {subdivision_id}",
                field="street_id",
            )
        return street

    def subdivision_sequence(self, db: Session, subdivision: GeoSubdivision | None) -> int:
        return NO_SEQUENCE if subdivision is None else self.subdivisions.rank(db, subdivision)

    def street_sequence(self, db: Session, street: GeoStreet | None) -> int:
        return NO_SEQUENCE if street is None else self.streets.rank(db, street)

    def allocate(
        self,
        db: Session,
        barangay_code: str,
        *,
        subdivision_id: int | None = None,
        street_id: int | None = None,
    ) -> CodeAllocation:
        """Validate the placement and hand out the next code in its scope."""

        leaf = parse_leaf_code(barangay_code)
        subdivision = self.resolve_subdivision(db, leaf.code, subdivision_id)
        street = self.resolve_street(db, leaf.code, subdivision_id, street_id)
        subdivision_seq = self.subdivision_sequence(db, subdivision)
        street_seq = self.street_sequence(db, street)

        in_use = self.households.max_house_seq(db, leaf.code, subdivision_id, street_id)
        house_seq = self.sequences.bump(
            db,
            leaf.code,
            subdivision_id or 0,
            street_id or 0,
            floor=in_use,
        )
        if house_seq > MAX_SEQUENCE:
            LOGGER.error(
                "household.code.overflow",
                extra={"barangay_code": leaf.code, "subdivision_id": subdivision_id, "street_id": street_id},
            )
        code = format_household_code(leaf.code, subdivision_seq, street_seq, house_seq)
        LOGGER.debug(
            "household.code.allocated",
            extra={"code": code, "barangay_code": leaf.code},
        )
        return CodeAllocation(
            code=code,
            barangay_code=leaf.code,
            subdivision_id=subdivision_id,
            street_id=street_id,
            subdivision_seq=subdivision_seq,
            street_seq=street_seq,
            house_seq=house_seq,
        )


__all__ = ["CodeAllocation", "IdentityAllocator"]
