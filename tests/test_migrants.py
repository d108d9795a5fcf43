from __future__ import annotations

from datetime import date

import pytest

from civreg.enums import AuditOperation
from civreg.errors import NotFoundError, ValidationError
from tests.conftest import BARANGAY, INDEPENDENT_BARANGAY, OTHER_BARANGAY


def test_recording_fills_the_previous_chain(registry, actor, household, make_resident):
    resident = make_resident(household_id=household.id)

    record = registry.record_migrant_info(
        actor,
        resident.id,
        previous_barangay_code=INDEPENDENT_BARANGAY,
        date_of_transfer=date(2020, 3, 1),
        reason_for_transferring="Work",
        duration_of_stay_current_months=70,
        intends_to_return=False,
    )

    assert (
        record.previous_barangay_code,
        record.previous_city_municipality_code,
        record.previous_province_code,
        record.previous_region_code,
    ) == (INDEPENDENT_BARANGAY, "137404", None, "13")
    assert record.created_by == "clerk-01"
    assert registry.get_resident(resident.id).is_migrant is True
    assert registry.get_household(household.id).migrant_count == 1
    assert registry.get_migrant_info(resident.id).reason_for_transferring == "Work"


def test_unknown_previous_barangay_is_not_found(registry, actor, make_resident):
    resident = make_resident()

    with pytest.raises(NotFoundError) as excinfo:
        registry.record_migrant_info(actor, resident.id, previous_barangay_code="042114999")

    assert excinfo.value.field == "previous_barangay_code"
    assert registry.get_resident(resident.id).is_migrant is False
    with pytest.raises(NotFoundError):
        registry.get_migrant_info(resident.id)


def test_malformed_previous_barangay_is_rejected(registry, actor, make_resident):
    resident = make_resident()
    with pytest.raises(ValidationError) as excinfo:
        registry.record_migrant_info(actor, resident.id, previous_barangay_code="12345")
    assert excinfo.value.field == "previous_barangay_code"


@pytest.mark.parametrize("transferred", [date(2026, 2, 1), date(1980, 1, 1)])
def test_transfer_date_must_fall_within_the_residents_life(
    registry, actor, make_resident, transferred
):
    resident = make_resident(birthdate=date(1990, 5, 1))
    with pytest.raises(ValidationError) as excinfo:
        registry.record_migrant_info(actor, resident.id, date_of_transfer=transferred)
    assert excinfo.value.field == "date_of_transfer"


def test_amending_keeps_fields_that_were_not_sent(registry, actor, make_resident):
    resident = make_resident()
    registry.record_migrant_info(
        actor, resident.id, previous_barangay_code=OTHER_BARANGAY, reason_for_transferring="Work"
    )

    amended = registry.record_migrant_info(actor, resident.id, intends_to_return=True)
    assert amended.previous_barangay_code == OTHER_BARANGAY
    assert amended.reason_for_transferring == "Work"
    assert amended.intends_to_return is True

    cleared_chain = registry.record_migrant_info(actor, resident.id, previous_barangay_code=None)
    assert cleared_chain.previous_barangay_code is None
    assert cleared_chain.previous_city_municipality_code is None
    assert cleared_chain.previous_region_code is None


def test_clearing_drops_the_flag_and_household_count(registry, actor, household, make_resident):
    resident = make_resident(household_id=household.id)
    registry.record_migrant_info(actor, resident.id, previous_barangay_code=OTHER_BARANGAY)

    cleared = registry.clear_migrant_info(actor, resident.id)

    assert cleared.is_active is False
    assert registry.get_resident(resident.id).is_migrant is False
    assert registry.get_household(household.id).migrant_count == 0
    with pytest.raises(NotFoundError):
        registry.get_migrant_info(resident.id)
    with pytest.raises(NotFoundError):
        registry.clear_migrant_info(actor, resident.id)


def test_recording_again_after_clearing_starts_empty(registry, actor, make_resident):
    resident = make_resident()
    first = registry.record_migrant_info(
        actor, resident.id, previous_barangay_code=OTHER_BARANGAY, reason_for_transferring="Family"
    )
    registry.clear_migrant_info(actor, resident.id)

    again = registry.record_migrant_info(actor, resident.id, intends_to_return=True)

    assert again.id == first.id
    assert again.is_active is True
    assert again.previous_barangay_code is None
    assert again.reason_for_transferring is None
    assert registry.get_resident(resident.id).is_migrant is True


def test_flag_cannot_be_dropped_while_details_exist(registry, actor, make_resident):
    resident = make_resident()
    registry.record_migrant_info(actor, resident.id, previous_barangay_code=OTHER_BARANGAY)

    with pytest.raises(ValidationError) as excinfo:
        registry.update_resident(actor, resident.id, is_migrant=False)
    assert excinfo.value.field == "is_migrant"
    assert registry.get_resident(resident.id).is_migrant is True


def test_migrant_history_is_audited(registry, actor, make_resident):
    resident = make_resident()
    record = registry.record_migrant_info(actor, resident.id, previous_barangay_code=OTHER_BARANGAY)
    registry.record_migrant_info(actor, resident.id, intends_to_return=True)
    registry.clear_migrant_info(actor, resident.id)

    entries = registry.get_audit_history("migrant_info", record.id)

    assert [entry.operation for entry in entries] == [
        AuditOperation.create,
        AuditOperation.update,
        AuditOperation.deactivate,
    ]
    assert entries[0].table_name == "migrant_information"
    assert entries[0].barangay_code == BARANGAY
    assert entries[1].old_values == entries[0].new_values
    assert entries[2].new_values["is_active"] is False


def test_deactivated_resident_cannot_gain_migrant_details(registry, actor, make_resident):
    resident = make_resident()
    registry.deactivate_resident(actor, resident.id)
    with pytest.raises(ValidationError) as excinfo:
        registry.record_migrant_info(actor, resident.id, previous_barangay_code=OTHER_BARANGAY)
    assert excinfo.value.field == "resident_id"
