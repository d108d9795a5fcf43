"""Registry service facade.

Every public mutation runs as one unit of work: a fresh session from
:func:`~app.db.session.session_scope`, the entity change, derived-field
recomputation and audit entries, then a single commit. Write collisions
(``IntegrityError`` from a unique index, ``StaleDataError`` from the
household version column, ``OperationalError`` carrying a retryable SQLSTATE
or a SQLite lock timeout) restart the whole unit of work up to
``max_conflict_retries`` times before surfacing
:class:`~civreg.errors.ConflictError`.

Households are always row-locked first, in ascending id order, before any
resident or membership row they contain.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from time import perf_counter
from typing import Any, Callable, Iterable, TypeVar

from prometheus_client import Counter, Histogram
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from app.db.models import (
    AuditLog,
    GeoStreet,
    GeoSubdivision,
    Household,
    HouseholdMember,
    MigrantInfo,
    Occupation,
    Resident,
)
from app.db.session import SessionLocal, session_scope
from app.repo.audit import AuditRepo
from app.repo.catalogs import (
    BarangayChain,
    OccupationCatalog,
    StreetRepo,
    SubdivisionRepo,
)
from app.repo.households import HouseholdRepo
from app.repo.memberships import MembershipRepo
from app.repo.migrants import MigrantInfoRepo
from app.repo.residents import ResidentRepo
from app.services.aggregator import HouseholdAggregator
from app.services.audit import AuditRecorder, audited_table
from app.services.geography import GeographyResolver, apply_chain, household_chain
from app.services.identity import IdentityAllocator
from app.services.payloads import (
    AGGREGATE_INPUTS,
    CLASSIFICATION_INPUTS,
    MEMBERSHIP_KEYS,
    PLACEMENT_FIELDS,
    RESIDENT_REQUIRED,
    HouseholdPayload,
    HouseholdUpdatePayload,
    MembershipPayload,
    MembershipUpdatePayload,
    MigrantPayload,
    ResidentPayload,
    StreetPayload,
    SubdivisionPayload,
    normalize_flags,
    validate_payload,
)
from civreg.classification import classify_resident
from civreg.config import ConcurrencyCfg, Settings
from civreg.context import ActorContext
from civreg.enums import IncomeClass
from civreg.errors import ConflictError, NotFoundError, RegistryError, ValidationError
from civreg.income import classify_income

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

REGISTRY_OPERATIONS = Counter(
    "civreg_registry_operations_total",
    "Registry units of work by operation and outcome.",
    ("operation", "outcome"),
)
REGISTRY_CONFLICT_RETRIES = Counter(
    "civreg_registry_conflict_retries_total",
    "Units of work restarted after a write conflict.",
    ("operation",),
)
REGISTRY_LATENCY = Histogram(
    "civreg_registry_operation_seconds",
    "Wall time of registry units of work, retries included.",
    ("operation",),
)

SEARCH_TARGETS = ("residents", "households")

MIGRANT_CHAIN_COLUMNS = (
    "previous_barangay_code",
    "previous_city_municipality_code",
    "previous_province_code",
    "previous_region_code",
)
MIGRANT_DETAIL_COLUMNS = (
    *MIGRANT_CHAIN_COLUMNS,
    "date_of_transfer",
    "reason_for_transferring",
    "duration_of_stay_current_months",
    "intends_to_return",
)


# PostgreSQL serialization_failure and deadlock_detected.
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


def _is_transient(exc: OperationalError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in RETRYABLE_SQLSTATES:
        return True
    return "database is locked" in str(orig).lower()


class UnitOfWork:
    """Session, actor and audit recorder shared by one registry operation."""

    def __init__(self, db: Session, actor: ActorContext) -> None:
        self.db = db
        self.actor = actor
        self.audit = AuditRecorder(db, actor)

    def finish(self) -> list[AuditLog]:
        for entity in self.audit.changed():
            if getattr(entity, "updated_by", None) != self.actor.user_id:
                entity.updated_by = self.actor.user_id
        return self.audit.flush()


class RegistryService:
    """Operations exposed to the surrounding application."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        *,
        settings: Settings | None = None,
        max_conflict_retries: int | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        concurrency = settings.concurrency if settings is not None else ConcurrencyCfg()
        self.session_factory = session_factory or SessionLocal
        self.max_conflict_retries = max(1, max_conflict_retries or concurrency.max_conflict_retries)
        self._today = today or date.today

        self.residents = ResidentRepo()
        self.households = HouseholdRepo()
        self.memberships = MembershipRepo()
        self.migrants = MigrantInfoRepo()
        self.subdivisions = SubdivisionRepo()
        self.streets = StreetRepo()
        self.occupations = OccupationCatalog()
        self.audit_log = AuditRepo()
        self.geography = GeographyResolver()
        self.identity = IdentityAllocator(
            subdivisions=self.subdivisions,
            streets=self.streets,
            households=self.households,
        )
        self.aggregator = HouseholdAggregator(
            households=self.households, memberships=self.memberships
        )

    # ------------------------------------------------------------------
    # Unit of work plumbing
    # ------------------------------------------------------------------
    def _mutate(self, operation: str, actor: ActorContext, work: Callable[[UnitOfWork], T]) -> T:
        start = perf_counter()
        last_error: Exception | None = None
        try:
            for attempt in range(1, self.max_conflict_retries + 1):
                try:
                    with session_scope(self.session_factory) as db:
                        uow = UnitOfWork(db, actor)
                        result = work(uow)
                        uow.finish()
                except (IntegrityError, StaleDataError) as exc:
                    last_error = exc
                except OperationalError as exc:
                    if not _is_transient(exc):
                        raise
                    last_error = exc
                except RegistryError as exc:
                    REGISTRY_OPERATIONS.labels(operation=operation, outcome=exc.code.lower()).inc()
                    raise
                else:
                    REGISTRY_OPERATIONS.labels(operation=operation, outcome="ok").inc()
                    return result
                REGISTRY_CONFLICT_RETRIES.labels(operation=operation).inc()
                LOGGER.warning(
                    "registry.conflict.retry",
                    extra={
                        "operation": operation,
                        "attempt": attempt,
                        "error": type(last_error).__name__,
                        "user_id": actor.user_id,
                    },
                )
        finally:
            REGISTRY_LATENCY.labels(operation=operation).observe(perf_counter() - start)

        REGISTRY_OPERATIONS.labels(operation=operation, outcome="conflict").inc()
        LOGGER.error(
            "registry.conflict.exhausted",
            extra={"operation": operation, "attempts": self.max_conflict_retries},
        )
        raise ConflictError(
            f"{operation} did not complete after {self.max_conflict_retries} attempts",
            details={"operation": operation},
        ) from last_error

    def _read(self, work: Callable[[Session], T]) -> T:
        with session_scope(self.session_factory) as db:
            return work(db)

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------
    def _lock_households(self, db: Session, *household_ids: int | None) -> None:
        for household_id in sorted({hid for hid in household_ids if hid is not None}):
            self.households.require(db, household_id, for_update=True, field="household_id")

    def _lock_resident(self, db: Session, resident_id: int, *household_ids: int | None) -> Resident:
        """Lock the resident's current household and ``household_ids``, then the resident.

        A resident that changes household between the unlocked read and its
        row lock restarts the unit of work.
        """

        current = self.residents.household_id_of(db, resident_id)
        self._lock_households(db, current, *household_ids)
        resident = self.residents.require(db, resident_id, for_update=True, field="resident_id")
        if resident.household_id != current:
            raise StaleDataError(f"Resident {resident_id} changed household while being locked")
        return resident

    def _lock_membership(self, db: Session, membership_id: int) -> HouseholdMember:
        household_id = self.memberships.household_id_of(db, membership_id)
        self._lock_households(db, household_id)
        return self.memberships.require(db, membership_id, for_update=True, field="membership_id")

    def _active_household(self, db: Session, household_id: int) -> Household:
        household = self.households.require(db, household_id, for_update=True, field="household_id")
        if not household.is_active:
            raise ValidationError(f"Household {household_id} is inactive", field="household_id")
        return household

    def _active_resident(self, db: Session, resident_id: int, *household_ids: int | None) -> Resident:
        resident = self._lock_resident(db, resident_id, *household_ids)
        if not resident.is_active:
            raise ValidationError(f"Resident {resident_id} is deactivated", field="resident_id")
        return resident

    def _resolve_occupation(self, db: Session, payload: dict[str, Any]) -> None:
        if "occupation_code" not in payload:
            return
        code = payload["occupation_code"]
        if code is None:
            payload["occupation_title"] = None
            return
        occupation = self.occupations.get(db, code)
        if occupation is None:
            raise NotFoundError(f"Occupation {code} not found", field="occupation_code")
        payload["occupation_title"] = occupation.title

    def _classify(self, resident: Resident) -> None:
        flags = classify_resident(
            resident.birthdate,
            employment_status=resident.employment_status,
            education_attainment=resident.education_attainment,
            is_graduate=resident.is_graduate,
            as_of=self._today(),
        )
        for name, value in flags.as_dict().items():
            setattr(resident, name, value)

    def _recompute(self, uow: UnitOfWork, household_id: int) -> Household:
        household = self.households.require(
            uow.db, household_id, for_update=True, field="household_id"
        )
        uow.audit.track(household)
        household, _ = self.aggregator.recompute(uow.db, household_id)
        return household

    def _attach(self, uow: UnitOfWork, household: Household, resident: Resident) -> None:
        """Point the resident at ``household`` and inherit its geographic chain."""

        uow.audit.track(resident)
        resident.household_id = household.id
        resident.household_code = household.code
        apply_chain(resident, household_chain(household))

    def _join(
        self,
        uow: UnitOfWork,
        household: Household,
        resident: Resident,
        fields: dict[str, Any],
    ) -> HouseholdMember:
        membership = HouseholdMember(
            household_id=household.id,
            resident_id=resident.id,
            is_active=True,
            created_by=uow.actor.user_id,
            updated_by=uow.actor.user_id,
            **fields,
        )
        uow.db.add(membership)
        uow.db.flush()
        uow.audit.track_new(membership)
        self._attach(uow, household, resident)
        return membership

    def _leave(self, uow: UnitOfWork, membership: HouseholdMember) -> int:
        """Deactivate ``membership`` and detach its resident; return the household id."""

        db = uow.db
        household = self.households.require(
            db, membership.household_id, for_update=True, field="household_id"
        )
        uow.audit.track(household)
        uow.audit.track(membership)
        membership.is_active = False

        resident = self.residents.require(
            db, membership.resident_id, for_update=True, field="resident_id"
        )
        uow.audit.track(resident)
        if resident.household_id == membership.household_id:
            resident.household_id = None
            resident.household_code = None
        if household.head_resident_id == resident.id:
            household.head_resident_id = None
            LOGGER.info(
                "household.head.cleared",
                extra={"household_id": household.id, "resident_id": resident.id},
            )
        db.flush()
        return household.id

    # ------------------------------------------------------------------
    # Residents
    # ------------------------------------------------------------------
    def create_resident(self, actor: ActorContext, **fields: Any) -> Resident:
        household_id = fields.pop("household_id", None)
        membership_fields = validate_payload(
            MembershipPayload,
            {key: fields.pop(key) for key in list(fields) if key in MEMBERSHIP_KEYS},
        )
        validated = validate_payload(ResidentPayload, fields, required=RESIDENT_REQUIRED)

        def work(uow: UnitOfWork) -> Resident:
            db = uow.db
            payload = dict(validated)
            household = None
            if household_id is not None:
                household = self._active_household(db, household_id)
            barangay_code = payload.pop("barangay_code", None)
            if household is not None and barangay_code and barangay_code != household.barangay_code:
                raise ValidationError(
                    "Resident barangay must match the household barangay",
                    field="barangay_code",
                )
            chain = self.geography.resolve_for_resident(
                db, household=household, barangay_code=barangay_code, actor=uow.actor
            )
            self._resolve_occupation(db, payload)

            resident = Resident(
                **payload,
                **chain,
                is_active=True,
                created_by=uow.actor.user_id,
                updated_by=uow.actor.user_id,
            )
            self._classify(resident)
            db.add(resident)
            db.flush()
            uow.audit.track_new(resident)

            if household is not None:
                self._join(uow, household, resident, membership_fields)
                self._recompute(uow, household.id)
            LOGGER.info(
                "resident.created",
                extra={"resident_id": resident.id, "barangay_code": resident.barangay_code},
            )
            return resident

        return self._mutate("create_resident", actor, work)

    def update_resident(self, actor: ActorContext, resident_id: int, **changes: Any) -> Resident:
        validated = validate_payload(ResidentPayload, changes)

        def work(uow: UnitOfWork) -> Resident:
            db = uow.db
            payload = dict(validated)
            resident = self._active_resident(db, resident_id)
            uow.audit.track(resident)
            if payload.get("is_migrant") is False and self._migrant_record(db, resident.id):
                raise ValidationError(
                    "Clear the migrant information before unflagging the resident",
                    field="is_migrant",
                )

            if "barangay_code" in payload:
                barangay_code = payload.pop("barangay_code")
                if resident.household_id is not None:
                    if barangay_code and barangay_code != resident.barangay_code:
                        raise ValidationError(
                            "Residents in a household inherit its barangay",
                            field="barangay_code",
                        )
                elif barangay_code != resident.barangay_code:
                    chain = self.geography.resolve_explicit(db, barangay_code, uow.actor)
                    apply_chain(resident, chain.codes())

            self._resolve_occupation(db, payload)
            for key, value in payload.items():
                setattr(resident, key, value)
            if CLASSIFICATION_INPUTS & payload.keys():
                self._classify(resident)
            if resident.household_id is not None and AGGREGATE_INPUTS & payload.keys():
                self._recompute(uow, resident.household_id)
            return resident

        return self._mutate("update_resident", actor, work)

    def deactivate_resident(self, actor: ActorContext, resident_id: int) -> Resident:
        def work(uow: UnitOfWork) -> Resident:
            db = uow.db
            resident = self._lock_resident(db, resident_id)
            if not resident.is_active:
                return resident
            uow.audit.track(resident)
            resident.is_active = False
            membership = self.memberships.active_for_resident(db, resident.id, for_update=True)
            if membership is not None:
                household_id = self._leave(uow, membership)
                self._recompute(uow, household_id)
            LOGGER.info("resident.deactivated", extra={"resident_id": resident.id})
            return resident

        return self._mutate("deactivate_resident", actor, work)

    def get_resident(self, resident_id: int) -> Resident:
        return self._read(
            lambda db: self.residents.require(db, resident_id, field="resident_id")
        )

    # ------------------------------------------------------------------
    # Migrant information
    # ------------------------------------------------------------------
    def _migrant_record(self, db: Session, resident_id: int) -> MigrantInfo | None:
        record = self.migrants.for_resident(db, resident_id)
        return record if record is not None and record.is_active else None

    def _previous_chain(self, db: Session, barangay_code: str | None) -> dict[str, str | None]:
        if barangay_code is None:
            return {column: None for column in MIGRANT_CHAIN_COLUMNS}
        try:
            chain = self.geography.resolve_chain(db, barangay_code)
        except NotFoundError as exc:
            raise NotFoundError(str(exc), field="previous_barangay_code") from exc
        return {f"previous_{key}": value for key, value in chain.codes().items()}

    def record_migrant_info(self, actor: ActorContext, resident_id: int, **fields: Any) -> MigrantInfo:
        """Create or amend the resident's previous-residence record and flag them as a migrant.

        Only the keys passed are written; a record that was cleared earlier
        starts over empty. ``previous_barangay_code`` fills the whole previous
        PSGC chain and ``None`` clears it.
        """

        validated = validate_payload(MigrantPayload, fields)

        def work(uow: UnitOfWork) -> MigrantInfo:
            db = uow.db
            payload = dict(validated)
            resident = self._active_resident(db, resident_id)
            transferred = payload.get("date_of_transfer")
            if transferred is not None and transferred > self._today():
                raise ValidationError(
                    "date_of_transfer cannot be in the future", field="date_of_transfer"
                )
            if transferred is not None and transferred < resident.birthdate:
                raise ValidationError(
                    "date_of_transfer is before the resident's birthdate", field="date_of_transfer"
                )
            if "previous_barangay_code" in payload:
                payload.update(self._previous_chain(db, payload.pop("previous_barangay_code")))

            record = self.migrants.for_resident(db, resident.id, for_update=True)
            if record is None:
                record = MigrantInfo(
                    resident_id=resident.id,
                    is_active=True,
                    created_by=uow.actor.user_id,
                    updated_by=uow.actor.user_id,
                    **payload,
                )
                db.add(record)
                db.flush()
                uow.audit.track_new(record)
            else:
                uow.audit.track(record)
                if not record.is_active:
                    for column in MIGRANT_DETAIL_COLUMNS:
                        setattr(record, column, None)
                    record.is_active = True
                for key, value in payload.items():
                    setattr(record, key, value)

            if not resident.is_migrant:
                uow.audit.track(resident)
                resident.is_migrant = True
                if resident.household_id is not None:
                    self._recompute(uow, resident.household_id)
            LOGGER.info(
                "resident.migrant.recorded",
                extra={
                    "resident_id": resident.id,
                    "previous_barangay_code": record.previous_barangay_code,
                },
            )
            return record

        return self._mutate("record_migrant_info", actor, work)

    def get_migrant_info(self, resident_id: int) -> MigrantInfo:
        def work(db: Session) -> MigrantInfo:
            self.residents.require(db, resident_id, field="resident_id")
            record = self._migrant_record(db, resident_id)
            if record is None:
                raise NotFoundError(
                    f"Resident {resident_id} has no migrant information", field="resident_id"
                )
            return record

        return self._read(work)

    def clear_migrant_info(self, actor: ActorContext, resident_id: int) -> MigrantInfo:
        """Deactivate the migrant record and drop the resident's migrant flag."""

        def work(uow: UnitOfWork) -> MigrantInfo:
            db = uow.db
            resident = self._active_resident(db, resident_id)
            record = self.migrants.for_resident(db, resident.id, for_update=True)
            if record is None or not record.is_active:
                raise NotFoundError(
                    f"Resident {resident_id} has no migrant information", field="resident_id"
                )
            uow.audit.track(record)
            record.is_active = False
            if resident.is_migrant:
                uow.audit.track(resident)
                resident.is_migrant = False
                if resident.household_id is not None:
                    self._recompute(uow, resident.household_id)
            return record

        return self._mutate("clear_migrant_info", actor, work)

    # ------------------------------------------------------------------
    # Households
    # ------------------------------------------------------------------
    def create_household(self, actor: ActorContext, **fields: Any) -> Household:
        validated = validate_payload(HouseholdPayload, fields)

        def work(uow: UnitOfWork) -> Household:
            db = uow.db
            payload = dict(validated)
            chain = self.geography.resolve_explicit(db, payload.pop("barangay_code", None), uow.actor)
            allocation = self.identity.allocate(
                db,
                chain.barangay_code,
                subdivision_id=payload.pop("subdivision_id", None),
                street_id=payload.pop("street_id", None),
            )
            household = Household(
                code=allocation.code,
                subdivision_id=allocation.subdivision_id,
                street_id=allocation.street_id,
                subdivision_seq=allocation.subdivision_seq,
                street_seq=allocation.street_seq,
                house_seq=allocation.house_seq,
                **chain.codes(),
                **payload,
                member_count=0,
                migrant_count=0,
                monthly_income=Decimal("0.00"),
                income_class=IncomeClass.poor,
                household_name=None,
                is_active=True,
                created_by=uow.actor.user_id,
                updated_by=uow.actor.user_id,
            )
            db.add(household)
            db.flush()
            uow.audit.track_new(household)
            LOGGER.info(
                "household.created",
                extra={"household_id": household.id, "code": household.code},
            )
            return household

        return self._mutate("create_household", actor, work)

    def update_household(self, actor: ActorContext, household_id: int, **changes: Any) -> Household:
        validated = validate_payload(HouseholdUpdatePayload, changes)
        head_specified = "head_resident_id" in validated

        def work(uow: UnitOfWork) -> Household:
            db = uow.db
            payload = dict(validated)
            head_resident_id = payload.pop("head_resident_id", None)
            household = self._active_household(db, household_id)
            uow.audit.track(household)

            placement = {key: payload.pop(key) for key in PLACEMENT_FIELDS if key in payload}
            if placement:
                self._relocate(uow, household, placement)

            if head_specified and head_resident_id != household.head_resident_id:
                if head_resident_id is not None:
                    membership = self.memberships.active_for_resident(db, head_resident_id)
                    if membership is None or membership.household_id != household.id:
                        raise ValidationError(
                            f"Resident {head_resident_id} is not an active member of household {household.id}",
                            field="head_resident_id",
                        )
                household.head_resident_id = head_resident_id

            for key, value in payload.items():
                setattr(household, key, value)
            self._recompute(uow, household.id)
            return household

        return self._mutate("update_household", actor, work)

    def _relocate(self, uow: UnitOfWork, household: Household, placement: dict[str, Any]) -> None:
        db = uow.db
        barangay_code = placement.get("barangay_code") or household.barangay_code
        moved_barangay = barangay_code != household.barangay_code
        # A new barangay invalidates subdivision and street unless they are given again.
        subdivision_id = placement.get(
            "subdivision_id", None if moved_barangay else household.subdivision_id
        )
        street_id = placement.get("street_id", None if moved_barangay else household.street_id)
        if (barangay_code, subdivision_id, street_id) == (
            household.barangay_code,
            household.subdivision_id,
            household.street_id,
        ):
            return

        chain = self.geography.resolve_chain(db, barangay_code)
        allocation = self.identity.allocate(
            db, chain.barangay_code, subdivision_id=subdivision_id, street_id=street_id
        )
        previous_code = household.code
        household.code = allocation.code
        household.subdivision_id = allocation.subdivision_id
        household.street_id = allocation.street_id
        household.subdivision_seq = allocation.subdivision_seq
        household.street_seq = allocation.street_seq
        household.house_seq = allocation.house_seq
        apply_chain(household, chain.codes())
        db.flush()

        for resident in self.memberships.active_residents(db, household.id):
            self._attach(uow, household, resident)
        LOGGER.info(
            "household.relocated",
            extra={
                "household_id": household.id,
                "previous_code": previous_code,
                "code": household.code,
            },
        )

    def get_household(self, household_id: int) -> Household:
        return self._read(
            lambda db: self.households.require(db, household_id, field="household_id")
        )

    def get_household_by_code(self, code: str) -> Household:
        def work(db: Session) -> Household:
            household = self.households.get_by_code(db, code)
            if household is None:
                raise NotFoundError(f"Household {code} not found", field="code")
            return household

        return self._read(work)

    def recompute_household(self, actor: ActorContext, household_id: int) -> Household:
        return self._mutate(
            "recompute_household", actor, lambda uow: self._recompute(uow, household_id)
        )

    # ------------------------------------------------------------------
    # Memberships
    # ------------------------------------------------------------------
    def add_membership(
        self,
        actor: ActorContext,
        household_id: int,
        resident_id: int,
        *,
        transfer: bool = False,
        make_head: bool = False,
        **fields: Any,
    ) -> HouseholdMember:
        payload = validate_payload(MembershipPayload, fields)

        def work(uow: UnitOfWork) -> HouseholdMember:
            db = uow.db
            resident = self._active_resident(db, resident_id, household_id)
            current = self.memberships.active_for_resident(db, resident.id, for_update=True)
            if current is not None and current.household_id == household_id:
                raise ValidationError(
                    f"Resident {resident_id} is already a member of household {household_id}",
                    field="resident_id",
                )
            if current is not None and not transfer:
                raise ValidationError(
                    f"Resident {resident_id} already belongs to household {current.household_id}",
                    field="resident_id",
                    details={"household_id": current.household_id},
                )

            household = self._active_household(db, household_id)
            uow.audit.track(household)

            previous_household_id = self._leave(uow, current) if current is not None else None
            membership = self._join(uow, household, resident, payload)
            if make_head:
                household.head_resident_id = resident.id

            self._recompute(uow, household.id)
            if previous_household_id is not None:
                self._recompute(uow, previous_household_id)
                LOGGER.info(
                    "membership.transferred",
                    extra={
                        "resident_id": resident.id,
                        "from_household_id": previous_household_id,
                        "to_household_id": household.id,
                    },
                )
            return membership

        return self._mutate("add_membership", actor, work)

    def remove_membership(self, actor: ActorContext, membership_id: int) -> HouseholdMember:
        def work(uow: UnitOfWork) -> HouseholdMember:
            membership = self._lock_membership(uow.db, membership_id)
            if not membership.is_active:
                return membership
            household_id = self._leave(uow, membership)
            self._recompute(uow, household_id)
            return membership

        return self._mutate("remove_membership", actor, work)

    def update_membership(
        self, actor: ActorContext, membership_id: int, **changes: Any
    ) -> HouseholdMember:
        validated = validate_payload(MembershipUpdatePayload, changes)

        def work(uow: UnitOfWork) -> HouseholdMember:
            db = uow.db
            payload = dict(validated)
            activate = payload.pop("is_active", None)
            membership = self._lock_membership(db, membership_id)
            uow.audit.track(membership)
            for key, value in payload.items():
                setattr(membership, key, value)

            if activate is False and membership.is_active:
                household_id = self._leave(uow, membership)
                self._recompute(uow, household_id)
            elif activate is True and not membership.is_active:
                household = self._active_household(db, membership.household_id)
                uow.audit.track(household)
                resident = self._active_resident(db, membership.resident_id, membership.household_id)
                current = self.memberships.active_for_resident(db, resident.id, for_update=True)
                if current is not None:
                    raise ValidationError(
                        f"Resident {resident.id} already belongs to household {current.household_id}",
                        field="is_active",
                        details={"household_id": current.household_id},
                    )
                membership.is_active = True
                self._attach(uow, household, resident)
                self._recompute(uow, household.id)
            return membership

        return self._mutate("update_membership", actor, work)

    def list_members(
        self, household_id: int, *, include_inactive: bool = False
    ) -> list[HouseholdMember]:
        def work(db: Session) -> list[HouseholdMember]:
            self.households.require(db, household_id, field="household_id")
            return self.memberships.list_for_household(
                db, household_id, include_inactive=include_inactive
            )

        return self._read(work)

    def get_membership(self, membership_id: int) -> HouseholdMember:
        return self._read(
            lambda db: self.memberships.require(db, membership_id, field="membership_id")
        )

    # ------------------------------------------------------------------
    # Audit and search
    # ------------------------------------------------------------------
    def get_audit_history(
        self, entity: str, record_id: int, *, limit: int | None = None
    ) -> list[AuditLog]:
        table_name = audited_table(entity)
        return self._read(
            lambda db: self.audit_log.history(db, table_name, record_id, limit=limit)
        )

    def search_by_classification(
        self,
        jurisdiction: str,
        flags: Iterable[str] = (),
        *,
        target: str = "residents",
        include_inactive: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Resident] | list[Household]:
        """Residents (or households with a matching member) in ``jurisdiction`` carrying every flag."""

        code = (jurisdiction or "").strip()
        if not code or not code.isdigit():
            raise ValidationError("jurisdiction must be a PSGC code", field="jurisdiction")
        if target not in SEARCH_TARGETS:
            raise ValidationError(
                f"target must be one of: {', '.join(SEARCH_TARGETS)}", field="target"
            )
        names = normalize_flags(flags)

        def work(db: Session):
            if target == "households":
                return self.households.search_by_member_flags(
                    db, jurisdiction=code, flags=names, limit=limit, offset=offset
                )
            return self.residents.search_by_flags(
                db,
                jurisdiction=code,
                flags=names,
                include_inactive=include_inactive,
                limit=limit,
                offset=offset,
            )

        return self._read(work)

    # ------------------------------------------------------------------
    # Catalogs and placement references
    # ------------------------------------------------------------------
    def resolve_chain(self, barangay_code: str) -> BarangayChain:
        return self._read(lambda db: self.geography.resolve_chain(db, barangay_code))

    def register_subdivision(
        self,
        actor: ActorContext,
        *,
        name: str,
        type: Any,
        barangay_code: str | None = None,
        description: str | None = None,
    ) -> GeoSubdivision:
        validated = validate_payload(
            SubdivisionPayload,
            {"name": name, "type": type, "barangay_code": barangay_code, "description": description},
        )

        def work(uow: UnitOfWork) -> GeoSubdivision:
            payload = dict(validated)
            chain = self.geography.resolve_explicit(uow.db, payload.pop("barangay_code"), uow.actor)
            subdivision = self.subdivisions.create(
                uow.db, **payload, barangay_code=chain.barangay_code, is_active=True
            )
            uow.db.refresh(subdivision)
            LOGGER.info(
                "geo.subdivision.registered",
                extra={"subdivision_id": subdivision.id, "barangay_code": chain.barangay_code},
            )
            return subdivision

        return self._mutate("register_subdivision", actor, work)

    def register_street(
        self,
        actor: ActorContext,
        *,
        name: str,
        barangay_code: str | None = None,
        subdivision_id: int | None = None,
        description: str | None = None,
    ) -> GeoStreet:
        validated = validate_payload(
            StreetPayload,
            {
                "name": name,
                "barangay_code": barangay_code,
                "subdivision_id": subdivision_id,
                "description": description,
            },
        )

        def work(uow: UnitOfWork) -> GeoStreet:
            payload = dict(validated)
            chain = self.geography.resolve_explicit(uow.db, payload.pop("barangay_code"), uow.actor)
            self.identity.resolve_subdivision(uow.db, chain.barangay_code, payload["subdivision_id"])
            street = self.streets.create(
                uow.db, **payload, barangay_code=chain.barangay_code, is_active=True
            )
            uow.db.refresh(street)
            LOGGER.info(
                "geo.street.registered",
                extra={"street_id": street.id, "barangay_code": chain.barangay_code},
            )
            return street

        return self._mutate("register_street", actor, work)

    def list_subdivisions(self, barangay_code: str) -> list[GeoSubdivision]:
        return self._read(lambda db: self.subdivisions.list_for_barangay(db, barangay_code))

    def list_streets(
        self, barangay_code: str, subdivision_id: int | None = None
    ) -> list[GeoStreet]:
        return self._read(
            lambda db: self.streets.list_for_scope(db, barangay_code, subdivision_id)
        )

    def lookup_occupation(self, code: str) -> Occupation:
        def work(db: Session) -> Occupation:
            occupation = self.occupations.get(db, code)
            if occupation is None:
                raise NotFoundError(f"Occupation {code} not found", field="occupation_code")
            return occupation

        return self._read(work)

    def search_occupations(self, query: str, *, limit: int = 20) -> list[Occupation]:
        return self._read(lambda db: self.occupations.search(db, query, limit=limit))

    @staticmethod
    def classify_income(monthly_income: Decimal | int | float | str | None) -> IncomeClass:
        return classify_income(monthly_income)


__all__ = ["RegistryService", "UnitOfWork"]
