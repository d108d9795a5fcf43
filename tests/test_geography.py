from __future__ import annotations

import pytest

from civreg.context import ActorContext
from civreg.errors import NotFoundError, ValidationError
from tests.conftest import BARANGAY, INDEPENDENT_BARANGAY


def test_chain_for_component_city_barangay(registry):
    chain = registry.resolve_chain(BARANGAY)

    assert chain.codes() == {
        "barangay_code": BARANGAY,
        "city_municipality_code": "042114",
        "province_code": "0421",
        "region_code": "04",
    }
    assert chain.province_name == "Cavite"
    assert chain.is_independent is False


def test_independent_city_has_region_but_no_province(registry):
    chain = registry.resolve_chain(INDEPENDENT_BARANGAY)

    assert chain.province_code is None
    assert chain.province_name is None
    assert chain.region_code == "13"
    assert chain.city_municipality_name == "Quezon City"
    assert chain.is_independent is True


def test_resident_in_independent_city(registry):
    qc_clerk = ActorContext(user_id="qc-clerk", jurisdiction=INDEPENDENT_BARANGAY)
    household = registry.create_household(qc_clerk)
    resident = registry.create_resident(
        qc_clerk,
        first_name="Maria",
        last_name="Clara",
        birthdate="1985-08-12",
        sex="female",
        household_id=household.id,
    )

    assert household.province_code is None
    assert resident.province_code is None
    assert resident.region_code == "13"
    assert resident.city_municipality_code == "137404"


def test_household_chain_wins_over_actor_jurisdiction(registry, household):
    outsider = ActorContext(user_id="qc-clerk", jurisdiction=INDEPENDENT_BARANGAY)
    resident = registry.create_resident(
        outsider,
        first_name="Jose",
        last_name="Rizal",
        birthdate="1961-06-19",
        sex="male",
        household_id=household.id,
    )
    assert resident.barangay_code == BARANGAY
    assert resident.province_code == "0421"


def test_unknown_barangay_never_yields_partial_chain(registry):
    with pytest.raises(NotFoundError) as excinfo:
        registry.resolve_chain("042114999")
    assert excinfo.value.field == "barangay_code"


def test_malformed_barangay_code(registry):
    with pytest.raises(ValidationError):
        registry.resolve_chain("42114")


def test_catalog_listings(registry, actor):
    zone = registry.register_subdivision(actor, name="Zone 7", type="Zone", description="riverside")
    registry.register_street(actor, name="Bonifacio", subdivision_id=zone.id)
    registry.register_street(actor, name="Aguinaldo")

    assert [row.name for row in registry.list_subdivisions(BARANGAY)] == ["Zone 7"]
    assert [row.name for row in registry.list_streets(BARANGAY)] == ["Aguinaldo"]
    assert [row.name for row in registry.list_streets(BARANGAY, zone.id)] == ["Bonifacio"]


def test_subdivision_type_is_validated(registry, actor):
    with pytest.raises(ValidationError) as excinfo:
        registry.register_subdivision(actor, name="Somewhere", type="Village")
    assert excinfo.value.field == "type"


@pytest.mark.parametrize("name", ["   ", "x" * 101])
def test_place_names_are_bounded(registry, actor, name):
    with pytest.raises(ValidationError) as excinfo:
        registry.register_street(actor, name=name)
    assert excinfo.value.field == "name"


def test_occupation_lookup_and_search(registry):
    assert registry.lookup_occupation("2511").title == "Systems analysts"
    assert [row.code for row in registry.search_occupations("software")] == ["2512"]
    assert [row.code for row in registry.search_occupations("25", limit=2)] == ["25", "2511"]
    with pytest.raises(NotFoundError):
        registry.lookup_occupation("0000")
