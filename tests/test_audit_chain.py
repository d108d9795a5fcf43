from __future__ import annotations

import pytest

from civreg.context import ActorContext
from civreg.enums import AuditOperation
from civreg.errors import ValidationError
from tests.conftest import BARANGAY


def test_every_mutation_leaves_one_linked_entry(registry, actor, make_resident):
    resident = make_resident(monthly_income="1000")
    registry.update_resident(actor, resident.id, middle_name="Santos")
    registry.update_resident(actor, resident.id, monthly_income="2500")
    registry.update_resident(actor, resident.id, employment_status="employed")
    registry.deactivate_resident(actor, resident.id)

    entries = registry.get_audit_history("resident", resident.id)

    assert [entry.operation for entry in entries] == [
        AuditOperation.create,
        AuditOperation.update,
        AuditOperation.update,
        AuditOperation.update,
        AuditOperation.deactivate,
    ]
    assert entries[0].old_values is None
    for previous, current in zip(entries, entries[1:]):
        assert current.old_values == previous.new_values
    assert entries[-1].new_values["is_active"] is False


def test_entries_carry_actor_and_jurisdiction(registry, actor, make_resident):
    resident = make_resident()
    (entry,) = registry.get_audit_history("residents", resident.id)

    assert entry.user_id == "clerk-01"
    assert entry.barangay_code == BARANGAY
    assert entry.table_name == "residents"
    assert entry.new_values["first_name"] == "Juan"
    assert entry.new_values["birthdate"] == "1990-05-01"
    assert entry.created_at.tzinfo is not None


def test_unchanged_update_is_not_recorded(registry, actor, make_resident):
    resident = make_resident(middle_name="Cruz")
    registry.update_resident(actor, resident.id, middle_name="Cruz")

    assert len(registry.get_audit_history("resident", resident.id)) == 1


def test_membership_change_audits_every_touched_row(registry, actor, household, make_resident):
    resident = make_resident(monthly_income="4000")
    membership = registry.add_membership(actor, household.id, resident.id)

    (member_entry,) = registry.get_audit_history("membership", membership.id)
    assert member_entry.operation is AuditOperation.create
    assert member_entry.barangay_code == BARANGAY

    household_entries = registry.get_audit_history("household", household.id)
    assert [entry.operation for entry in household_entries] == [
        AuditOperation.create,
        AuditOperation.update,
    ]
    assert household_entries[1].new_values["member_count"] == 1
    assert household_entries[1].old_values == household_entries[0].new_values

    resident_entries = registry.get_audit_history("resident", resident.id)
    assert resident_entries[-1].new_values["household_id"] == household.id


def test_updated_by_follows_the_last_actor(registry, make_resident):
    resident = make_resident()
    other = ActorContext(user_id="clerk-09", jurisdiction=BARANGAY)
    updated = registry.update_resident(other, resident.id, extension_name="Jr.")

    assert updated.created_by == "clerk-01"
    assert updated.updated_by == "clerk-09"
    last = registry.get_audit_history("resident", resident.id)[-1]
    assert last.user_id == "clerk-09"
    assert last.new_values["updated_by"] == "clerk-09"


def test_history_limit_and_unknown_entity(registry, actor, make_resident):
    resident = make_resident()
    registry.update_resident(actor, resident.id, middle_name="A")
    registry.update_resident(actor, resident.id, middle_name="B")

    assert len(registry.get_audit_history("resident", resident.id, limit=2)) == 2
    with pytest.raises(ValidationError) as excinfo:
        registry.get_audit_history("occupation", 1)
    assert excinfo.value.field == "entity"
