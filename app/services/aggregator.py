"""Household aggregate maintenance.

:class:`HouseholdAggregator` is the only code path that writes
``member_count``, ``migrant_count``, ``monthly_income``, ``income_class`` and
``household_name``. It always derives them from the active membership set,
so running it twice in a row is a no-op.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from app.db.models import Household, Resident
from app.repo.households import HouseholdRepo
from app.repo.memberships import MembershipRepo
from civreg.enums import IncomeClass
from civreg.errors import ConsistencyError
from civreg.income import classify_income

LOGGER = logging.getLogger(__name__)

AGGREGATE_FIELDS = (
    "member_count",
    "migrant_count",
    "monthly_income",
    "income_class",
    "household_name",
)


@dataclass(frozen=True)
class HouseholdAggregates:
    member_count: int
    migrant_count: int
    monthly_income: Decimal
    income_class: IncomeClass
    household_name: str | None


class HouseholdAggregator:
    def __init__(
        self,
        *,
        households: HouseholdRepo | None = None,
        memberships: MembershipRepo | None = None,
    ) -> None:
        self.households = households or HouseholdRepo()
        self.memberships = memberships or MembershipRepo()

    def compute(self, db: Session, household: Household) -> HouseholdAggregates:
        members = self.memberships.active_residents(db, household.id)
        income = sum(
            (Decimal(member.monthly_income or 0) for member in members), Decimal("0")
        )
        head_name: str | None = None
        if household.head_resident_id is not None:
            head = db.get(Resident, household.head_resident_id)
            head_name = head.last_name if head is not None else None
        aggregates = HouseholdAggregates(
            member_count=len(members),
            migrant_count=sum(1 for member in members if member.is_migrant),
            monthly_income=income.quantize(Decimal("0.01")),
            income_class=classify_income(income),
            household_name=head_name,
        )
        self._check(household, aggregates)
        return aggregates

    def _check(self, household: Household, aggregates: HouseholdAggregates) -> None:
        problem: str | None = None
        if aggregates.member_count < 0 or aggregates.migrant_count < 0:
            problem = "negative member count"
        elif aggregates.migrant_count > aggregates.member_count:
            problem = "more migrants than members"
        elif aggregates.monthly_income < 0:
            problem = "negative household income"
        if problem is None:
            return
        LOGGER.error(
            "household.aggregate.inconsistent",
            extra={
                "household_id": household.id,
                "problem": problem,
                "member_count": aggregates.member_count,
                "migrant_count": aggregates.migrant_count,
                "monthly_income": str(aggregates.monthly_income),
            },
        )
        raise ConsistencyError(
            f"Household {household.id} aggregates are inconsistent: {problem}",
            details={"household_id": household.id},
        )

    def recompute(self, db: Session, household_id: int) -> tuple[Household, bool]:
        """Lock the household, rewrite its aggregates and report whether any changed."""

        # Pending membership and resident edits must be visible to the member query.
        db.flush()
        household = self.households.require(
            db, household_id, for_update=True, field="household_id"
        )
        aggregates = self.compute(db, household)
        changed = False
        for field in AGGREGATE_FIELDS:
            value = getattr(aggregates, field)
            if getattr(household, field) != value:
                setattr(household, field, value)
                changed = True
        if changed:
            db.flush()
            LOGGER.info(
                "household.aggregate.recomputed",
                extra={
                    "household_id": household.id,
                    "member_count": aggregates.member_count,
                    "income_class": aggregates.income_class.value,
                },
            )
        return household, changed


__all__ = ["AGGREGATE_FIELDS", "HouseholdAggregates", "HouseholdAggregator"]
