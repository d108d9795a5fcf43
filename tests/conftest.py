"""Shared fixtures: a throwaway SQLite registry seeded with catalog rows."""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pytest

from app.db.base import Base
from app.db.models import GeoBarangay, GeoCity, GeoProvince, GeoRegion, Occupation
from app.db.session import build_engine, make_session_factory
from app.services.registry import RegistryService
from civreg.context import ActorContext

TODAY = date(2026, 1, 15)

BARANGAY = "042114014"
OTHER_BARANGAY = "042114015"
INDEPENDENT_BARANGAY = "137404001"


def _seed_catalogs(session) -> None:
    session.add_all(
        [
            GeoRegion(code="04", name="CALABARZON"),
            GeoRegion(code="13", name="National Capital Region"),
        ]
    )
    session.flush()
    session.add(GeoProvince(code="0421", name="Cavite", region_code="04"))
    session.flush()
    session.add_all(
        [
            GeoCity(
                code="042114",
                name="City of Imus",
                type="City",
                province_code="0421",
                region_code="04",
            ),
            GeoCity(
                code="137404",
                name="Quezon City",
                type="City",
                province_code=None,
                region_code="13",
                is_independent=True,
            ),
        ]
    )
    session.flush()
    session.add_all(
        [
            GeoBarangay(code=BARANGAY, name="Alapan I-A", city_municipality_code="042114"),
            GeoBarangay(code=OTHER_BARANGAY, name="Alapan I-B", city_municipality_code="042114"),
            GeoBarangay(code=INDEPENDENT_BARANGAY, name="Alicia", city_municipality_code="137404"),
        ]
    )
    session.add(
        Occupation(
            code="25",
            title="Information and communications technology professionals",
            level=2,
        )
    )
    session.flush()
    session.add_all(
        [
            Occupation(code="2511", title="Systems analysts", level=4, parent_code="25"),
            Occupation(code="2512", title="Software developers", level=4, parent_code="25"),
        ]
    )


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("CIVREG_HOME", str(tmp_path / "civreg-home"))
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'registry.db'}")
    Base.metadata.create_all(engine)
    factory = make_session_factory(engine)
    with factory() as session:
        _seed_catalogs(session)
        session.commit()
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def registry(session_factory) -> RegistryService:
    return RegistryService(session_factory, today=lambda: TODAY)


@pytest.fixture
def actor() -> ActorContext:
    return ActorContext(user_id="clerk-01", jurisdiction=BARANGAY)


@pytest.fixture
def make_resident(registry, actor) -> Callable[..., Any]:
    def factory(**overrides: Any):
        fields: dict[str, Any] = {
            "first_name": "Juan",
            "last_name": "Dela Cruz",
            "birthdate": date(1990, 5, 1),
            "sex": "male",
        }
        fields.update(overrides)
        return registry.create_resident(actor, **fields)

    return factory


@pytest.fixture
def household(registry, actor):
    return registry.create_household(actor, barangay_code=BARANGAY)