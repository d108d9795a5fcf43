from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.services.registry import RegistryService
from civreg.errors import ConflictError, ValidationError
from civreg.identity import parse_household_code

WORKERS = 6
PER_WORKER = 3


def test_concurrent_creations_get_distinct_codes(registry, actor):
    barrier = threading.Barrier(WORKERS)

    def create_batch(_: int) -> list[str]:
        barrier.wait()
        return [registry.create_household(actor).code for _ in range(PER_WORKER)]

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        codes = [code for batch in pool.map(create_batch, range(WORKERS)) for code in batch]

    assert len(codes) == WORKERS * PER_WORKER
    assert len(set(codes)) == len(codes)
    house_numbers = sorted(parse_household_code(code).house_seq for code in codes)
    assert house_numbers == list(range(1, WORKERS * PER_WORKER + 1))


def test_concurrent_joins_admit_only_one_household(registry, actor, make_resident):
    households = [registry.create_household(actor) for _ in range(WORKERS)]
    resident = make_resident()
    barrier = threading.Barrier(WORKERS)

    def join(household_id: int) -> str:
        barrier.wait()
        try:
            registry.add_membership(actor, household_id, resident.id)
        except ValidationError:
            return "rejected"
        return "joined"

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        outcomes = list(pool.map(join, [household.id for household in households]))

    assert outcomes.count("joined") == 1
    assert sum(registry.get_household(h.id).member_count for h in households) == 1


def test_conflicts_are_retried_then_surfaced(session_factory, actor):
    registry = RegistryService(session_factory, max_conflict_retries=3)
    attempts: list[int] = []

    def always_conflicts(uow):
        attempts.append(1)
        raise IntegrityError("INSERT INTO households ...", {}, Exception("UNIQUE constraint failed"))

    with pytest.raises(ConflictError) as excinfo:
        registry._mutate("create_household", actor, always_conflicts)

    assert len(attempts) == 3
    assert excinfo.value.status_code == 409
    assert excinfo.value.details == {"operation": "create_household"}


def test_transient_conflict_succeeds_on_retry(session_factory, actor):
    registry = RegistryService(session_factory, max_conflict_retries=3)
    attempts: list[int] = []

    def flaky(uow):
        attempts.append(1)
        if len(attempts) == 1:
            raise IntegrityError("UPDATE households ...", {}, Exception("UNIQUE constraint failed"))
        return "done"

    assert registry._mutate("update_household", actor, flaky) == "done"
    assert len(attempts) == 2


def test_concurrent_joins_to_one_household_are_all_counted(
    registry, actor, household, make_resident
):
    residents = [
        make_resident(first_name=f"Member {n}", monthly_income="1000") for n in range(WORKERS)
    ]
    barrier = threading.Barrier(WORKERS)

    def join(resident_id: int) -> int:
        barrier.wait()
        return registry.add_membership(actor, household.id, resident_id).id

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        membership_ids = list(pool.map(join, [resident.id for resident in residents]))

    assert len(set(membership_ids)) == WORKERS
    refreshed = registry.get_household(household.id)
    assert refreshed.member_count == WORKERS
    assert refreshed.monthly_income == Decimal("1000.00") * WORKERS
    members = registry.list_members(household.id)
    assert sorted(member.resident_id for member in members) == sorted(r.id for r in residents)


class _DriverError(Exception):
    """Stand-in for a DBAPI exception carrying a PostgreSQL error code."""

    def __init__(self, attribute: str, code: str) -> None:
        super().__init__(f"server error {code}")
        setattr(self, attribute, code)


@pytest.mark.parametrize(
    ("attribute", "code"),
    [("sqlstate", "40001"), ("sqlstate", "40P01"), ("pgcode", "40P01")],
)
def test_serialization_failures_and_deadlocks_are_retried(session_factory, actor, attribute, code):
    registry = RegistryService(session_factory, max_conflict_retries=3)
    attempts: list[int] = []

    def deadlocked_once(uow):
        attempts.append(1)
        if len(attempts) == 1:
            raise OperationalError("UPDATE households ...", {}, _DriverError(attribute, code))
        return "done"

    assert registry._mutate("add_membership", actor, deadlocked_once) == "done"
    assert len(attempts) == 2


def test_repeated_deadlocks_surface_as_conflict(session_factory, actor):
    registry = RegistryService(session_factory, max_conflict_retries=2)

    def always_deadlocked(uow):
        raise OperationalError("UPDATE households ...", {}, _DriverError("sqlstate", "40P01"))

    with pytest.raises(ConflictError) as excinfo:
        registry._mutate("add_membership", actor, always_deadlocked)
    assert isinstance(excinfo.value.__cause__, OperationalError)


def test_other_operational_errors_are_not_retried(session_factory, actor):
    registry = RegistryService(session_factory, max_conflict_retries=3)
    attempts: list[int] = []

    def connection_lost(uow):
        attempts.append(1)
        raise OperationalError("SELECT 1", {}, _DriverError("sqlstate", "08006"))

    with pytest.raises(OperationalError):
        registry._mutate("get_resident", actor, connection_lost)
    assert len(attempts) == 1


def _record_row_locks(monkeypatch, registry) -> list[tuple[str, int]]:
    locks: list[tuple[str, int]] = []

    for label, repo in (("household", registry.households), ("resident", registry.residents)):
        def require(db, id, *, for_update=False, field="id", _label=label, _original=repo.require):
            if for_update:
                locks.append((_label, id))
            return _original(db, id, for_update=for_update, field=field)

        monkeypatch.setattr(repo, "require", require)
    return locks


def test_resident_update_locks_the_household_first(
    registry, actor, household, make_resident, monkeypatch
):
    resident = make_resident(household_id=household.id, monthly_income="1000")
    locks = _record_row_locks(monkeypatch, registry)

    registry.update_resident(actor, resident.id, monthly_income="2500")

    assert locks[0] == ("household", household.id)
    assert locks.index(("resident", resident.id)) == 1


def test_transfer_locks_households_in_id_order(
    registry, actor, household, make_resident, monkeypatch
):
    later = registry.create_household(actor)
    resident = make_resident(household_id=later.id)
    locks = _record_row_locks(monkeypatch, registry)

    registry.add_membership(actor, household.id, resident.id, transfer=True)

    assert locks[:3] == [
        ("household", household.id),
        ("household", later.id),
        ("resident", resident.id),
    ]


def test_resident_moved_while_locking_restarts_the_work(
    registry, actor, household, make_resident, monkeypatch
):
    resident = make_resident(household_id=household.id)
    original = registry.residents.household_id_of
    reads: list[int] = []

    def outdated_once(db, resident_id):
        reads.append(resident_id)
        if len(reads) == 1:
            return None
        return original(db, resident_id)

    monkeypatch.setattr(registry.residents, "household_id_of", outdated_once)

    updated = registry.update_resident(actor, resident.id, middle_name="Santos")

    assert updated.middle_name == "Santos"
    assert reads == [resident.id, resident.id]
