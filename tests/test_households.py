from __future__ import annotations

import pytest

from civreg.context import ActorContext
from civreg.errors import ConflictError, NotFoundError, ValidationError
from tests.conftest import BARANGAY, OTHER_BARANGAY


def test_first_codes_in_a_barangay_are_sequential(registry, actor):
    first = registry.create_household(actor, barangay_code=BARANGAY)
    second = registry.create_household(actor, barangay_code=BARANGAY)

    assert first.code == "042114014-0000-0000-0001"
    assert second.code == "042114014-0000-0000-0002"
    assert (second.subdivision_seq, second.street_seq, second.house_seq) == (0, 0, 2)


def test_household_defaults_to_actor_jurisdiction(registry, actor):
    household = registry.create_household(actor)
    assert household.barangay_code == BARANGAY
    assert household.created_by == "clerk-01"
    assert household.member_count == 0
    assert household.income_class.value == "poor"


def test_household_requires_some_barangay(registry):
    with pytest.raises(ValidationError) as excinfo:
        registry.create_household(ActorContext(user_id="clerk-02"))
    assert excinfo.value.field == "barangay_code"


def test_unknown_barangay_is_not_found(registry, actor):
    with pytest.raises(NotFoundError):
        registry.create_household(actor, barangay_code="042114999")


def test_subdivision_and_street_blocks_use_registration_rank(registry, actor):
    registry.register_subdivision(actor, name="Phase 1", type="Subdivision")
    phase_two = registry.register_subdivision(actor, name="Phase 2", type="Subdivision")
    registry.register_street(actor, name="Mabini", subdivision_id=phase_two.id)
    rizal = registry.register_street(actor, name="Rizal", subdivision_id=phase_two.id)

    household = registry.create_household(
        actor, subdivision_id=phase_two.id, street_id=rizal.id
    )

    assert household.code == "042114014-0002-0002-0001"


def test_each_placement_scope_counts_independently(registry, actor):
    purok = registry.register_subdivision(actor, name="Purok 3", type="Purok")
    in_purok = registry.create_household(actor, subdivision_id=purok.id)
    loose = registry.create_household(actor)
    in_purok_again = registry.create_household(actor, subdivision_id=purok.id)

    assert in_purok.code == "042114014-0001-0000-0001"
    assert loose.code == "042114014-0000-0000-0001"
    assert in_purok_again.code == "042114014-0001-0000-0002"


def test_street_must_belong_to_the_given_subdivision(registry, actor):
    zone = registry.register_subdivision(actor, name="Zone 1", type="Zone")
    street = registry.register_street(actor, name="Luna")

    with pytest.raises(ValidationError) as excinfo:
        registry.create_household(actor, subdivision_id=zone.id, street_id=street.id)
    assert excinfo.value.field == "street_id"


def test_subdivision_from_another_barangay_is_rejected(registry, actor):
    elsewhere = registry.register_subdivision(
        actor, name="Sitio Uno", type="Sitio", barangay_code=OTHER_BARANGAY
    )
    with pytest.raises(ValidationError) as excinfo:
        registry.create_household(actor, subdivision_id=elsewhere.id)
    assert excinfo.value.field == "subdivision_id"


def test_duplicate_subdivision_name_is_a_conflict(registry, actor):
    registry.register_subdivision(actor, name="Phase 1", type="Subdivision")
    with pytest.raises(ConflictError):
        registry.register_subdivision(actor, name="Phase 1", type="Subdivision")


def test_lookup_by_code(registry, household):
    found = registry.get_household_by_code(household.code)
    assert found.id == household.id

    with pytest.raises(NotFoundError):
        registry.get_household_by_code("042114014-0000-0000-0099")


def test_relocation_regenerates_code_and_member_chain(registry, actor, household, make_resident):
    resident = make_resident()
    registry.add_membership(actor, household.id, resident.id)

    moved = registry.update_household(actor, household.id, barangay_code=OTHER_BARANGAY)

    assert moved.code == f"{OTHER_BARANGAY}-0000-0000-0001"
    assert moved.barangay_code == OTHER_BARANGAY
    member = registry.get_resident(resident.id)
    assert member.barangay_code == OTHER_BARANGAY
    assert member.household_code == moved.code


def test_updating_plain_fields_keeps_the_code(registry, actor, household):
    updated = registry.update_household(actor, household.id, house_number="12-B", total_families=2)
    assert updated.code == household.code
    assert updated.house_number == "12-B"
    assert updated.total_families == 2


def test_head_must_be_an_active_member(registry, actor, household, make_resident):
    outsider = make_resident(last_name="Santos")
    with pytest.raises(ValidationError) as excinfo:
        registry.update_household(actor, household.id, head_resident_id=outsider.id)
    assert excinfo.value.field == "head_resident_id"

    registry.add_membership(actor, household.id, outsider.id)
    updated = registry.update_household(actor, household.id, head_resident_id=outsider.id)
    assert updated.head_resident_id == outsider.id
    assert updated.household_name == "Santos"


def test_membership_details_update_without_touching_aggregates(
    registry, actor, household, make_resident
):
    resident = make_resident(monthly_income="4000")
    membership = registry.add_membership(actor, household.id, resident.id)
    before = registry.get_household(household.id)

    updated = registry.update_membership(
        actor, membership.id, family_position="son", position_notes="eldest"
    )

    assert updated.family_position.value == "son"
    assert updated.position_notes == "eldest"
    assert updated.is_active is True
    assert registry.get_household(household.id).version == before.version


def test_removing_a_membership_is_idempotent(registry, actor, household, make_resident):
    resident = make_resident()
    membership = registry.add_membership(actor, household.id, resident.id)

    removed = registry.remove_membership(actor, membership.id)
    assert removed.is_active is False
    assert registry.get_resident(resident.id).household_id is None
    entries = registry.get_audit_history("membership", membership.id)

    again = registry.remove_membership(actor, membership.id)
    assert again.is_active is False
    assert len(registry.get_audit_history("membership", membership.id)) == len(entries)
    assert [row.id for row in registry.list_members(household.id)] == []
    assert [row.id for row in registry.list_members(household.id, include_inactive=True)] == [
        membership.id
    ]


def test_unknown_membership_is_not_found(registry, actor):
    with pytest.raises(NotFoundError) as excinfo:
        registry.remove_membership(actor, 9999)
    assert excinfo.value.field == "membership_id"
