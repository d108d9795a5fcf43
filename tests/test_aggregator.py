from __future__ import annotations

from decimal import Decimal

import pytest

from app.db.session import session_scope
from app.services.aggregator import HouseholdAggregator
from civreg.enums import IncomeClass
from civreg.errors import ValidationError


def test_aggregates_follow_active_members(registry, actor, household, make_resident):
    first = make_resident(household_id=household.id, monthly_income="15000", is_migrant=True)
    make_resident(household_id=household.id, monthly_income="10000.50")
    make_resident(household_id=household.id)

    refreshed = registry.get_household(household.id)
    assert refreshed.member_count == 3
    assert refreshed.migrant_count == 1
    assert refreshed.monthly_income == Decimal("25000.50")
    assert refreshed.income_class is IncomeClass.lower_middle_class

    registry.update_resident(actor, first.id, monthly_income="60000")
    assert registry.get_household(household.id).income_class is IncomeClass.upper_middle_income


def test_recompute_twice_writes_nothing_the_second_time(
    registry, actor, household, make_resident, session_factory
):
    make_resident(household_id=household.id, monthly_income="30000")
    before = registry.get_household(household.id)
    history = registry.get_audit_history("household", household.id)

    again = registry.recompute_household(actor, household.id)

    assert again.version == before.version
    assert again.monthly_income == before.monthly_income
    assert len(registry.get_audit_history("household", household.id)) == len(history)

    with session_scope(session_factory) as db:
        _, changed = HouseholdAggregator().recompute(db, household.id)
    assert changed is False


def test_membership_is_exclusive_without_transfer(registry, actor, make_resident):
    first = registry.create_household(actor)
    second = registry.create_household(actor)
    resident = make_resident(household_id=first.id)

    with pytest.raises(ValidationError) as excinfo:
        registry.add_membership(actor, second.id, resident.id)
    assert excinfo.value.details == {"household_id": first.id}


def test_transfer_moves_resident_and_recomputes_both(registry, actor, make_resident):
    origin = registry.create_household(actor)
    target = registry.create_household(actor)
    resident = make_resident(household_id=origin.id, monthly_income="20000")

    membership = registry.add_membership(actor, target.id, resident.id, transfer=True)

    assert membership.household_id == target.id
    assert registry.get_household(origin.id).member_count == 0
    assert registry.get_household(origin.id).monthly_income == Decimal("0.00")
    assert registry.get_household(target.id).member_count == 1
    assert registry.get_household(target.id).monthly_income == Decimal("20000.00")
    assert registry.get_resident(resident.id).household_code == target.code
    assert registry.list_members(origin.id) == []
    assert len(registry.list_members(origin.id, include_inactive=True)) == 1


def test_removing_the_head_clears_head_and_name(registry, actor, household, make_resident):
    head = make_resident(last_name="Bautista")
    membership = registry.add_membership(actor, household.id, head.id, make_head=True)
    assert registry.get_household(household.id).household_name == "Bautista"

    removed = registry.remove_membership(actor, membership.id)

    assert removed.is_active is False
    refreshed = registry.get_household(household.id)
    assert refreshed.head_resident_id is None
    assert refreshed.household_name is None
    assert refreshed.member_count == 0
    assert registry.get_resident(head.id).household_id is None


def test_head_surname_change_renames_household(registry, actor, household, make_resident):
    head = make_resident(last_name="Garcia")
    registry.add_membership(actor, household.id, head.id, make_head=True)

    registry.update_resident(actor, head.id, last_name="Mendoza")

    assert registry.get_household(household.id).household_name == "Mendoza"


def test_deactivating_a_member_drops_it_from_aggregates(registry, actor, household, make_resident):
    leaver = make_resident(household_id=household.id, monthly_income="5000", is_migrant=True)
    make_resident(household_id=household.id, monthly_income="7000")

    registry.deactivate_resident(actor, leaver.id)

    refreshed = registry.get_household(household.id)
    assert refreshed.member_count == 1
    assert refreshed.migrant_count == 0
    assert refreshed.monthly_income == Decimal("7000.00")


def test_membership_can_be_deactivated_and_restored(registry, actor, household, make_resident):
    resident = make_resident(monthly_income="9600")
    membership = registry.add_membership(actor, household.id, resident.id)

    registry.update_membership(actor, membership.id, is_active=False)
    assert registry.get_household(household.id).member_count == 0

    restored = registry.update_membership(
        actor, membership.id, is_active=True, relationship_to_head="son"
    )
    assert restored.is_active is True
    assert restored.relationship_to_head == "son"
    refreshed = registry.get_household(household.id)
    assert refreshed.member_count == 1
    assert refreshed.income_class is IncomeClass.low_income
