"""Read access to the PSGC geography and PSOC occupation reference catalogs."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.db.models import (
    GeoBarangay,
    GeoCity,
    GeoProvince,
    GeoRegion,
    GeoStreet,
    GeoSubdivision,
    Occupation,
)
from app.repo.base import BaseRepo


@dataclass(frozen=True)
class BarangayChain:
    """Full ancestry of a barangay; ``province_*`` is ``None`` for independent cities."""

    barangay_code: str
    barangay_name: str
    city_municipality_code: str
    city_municipality_name: str
    province_code: str | None
    province_name: str | None
    region_code: str
    region_name: str
    is_independent: bool = False

    def codes(self) -> dict[str, str | None]:
        return {
            "barangay_code": self.barangay_code,
            "city_municipality_code": self.city_municipality_code,
            "province_code": self.province_code,
            "region_code": self.region_code,
        }


class GeographyCatalog:
    """Lookups over the region → province → city → barangay hierarchy."""

    def lookup_barangay(self, db: Session, code: str) -> BarangayChain | None:
        stmt = (
            select(GeoBarangay, GeoCity, GeoProvince, GeoRegion)
            .join(GeoCity, GeoCity.code == GeoBarangay.city_municipality_code)
            .outerjoin(GeoProvince, GeoProvince.code == GeoCity.province_code)
            .join(GeoRegion, GeoRegion.code == GeoCity.region_code)
            .where(GeoBarangay.code == code)
        )
        row = db.execute(stmt).first()
        if row is None:
            return None
        barangay, city, province, region = row
        return BarangayChain(
            barangay_code=barangay.code,
            barangay_name=barangay.name,
            city_municipality_code=city.code,
            city_municipality_name=city.name,
            province_code=province.code if province is not None else None,
            province_name=province.name if province is not None else None,
            region_code=region.code,
            region_name=region.name,
            is_independent=bool(city.is_independent),
        )


class SubdivisionRepo(BaseRepo[GeoSubdivision]):
    def __init__(self) -> None:
        super().__init__(GeoSubdivision)

    def list_for_barangay(self, db: Session, barangay_code: str) -> list[GeoSubdivision]:
        stmt = (
            select(self.model)
            .where(self.model.barangay_code == barangay_code)
            .order_by(self.model.id)
        )
        return list(db.execute(stmt).scalars())

    def rank(self, db: Session, subdivision: GeoSubdivision) -> int:
        """1-based position of ``subdivision`` in creation order within its barangay."""

        stmt = select(func.count(self.model.id)).where(
            self.model.barangay_code == subdivision.barangay_code,
            self.model.id <= subdivision.id,
        )
        return int(db.execute(stmt).scalar_one())


class StreetRepo(BaseRepo[GeoStreet]):
    def __init__(self) -> None:
        super().__init__(GeoStreet)

    def _scope(self, barangay_code: str, subdivision_id: int | None):
        conditions = [self.model.barangay_code == barangay_code]
        if subdivision_id is None:
            conditions.append(self.model.subdivision_id.is_(None))
        else:
            conditions.append(self.model.subdivision_id == subdivision_id)
        return conditions

    def list_for_scope(
        self, db: Session, barangay_code: str, subdivision_id: int | None = None
    ) -> list[GeoStreet]:
        stmt = (
            select(self.model)
            .where(*self._scope(barangay_code, subdivision_id))
            .order_by(self.model.id)
        )
        return list(db.execute(stmt).scalars())

    def rank(self, db: Session, street: GeoStreet) -> int:
        """1-based position of ``street`` in creation order within (barangay, subdivision)."""

        stmt = select(func.count(self.model.id)).where(
            *self._scope(street.barangay_code, street.subdivision_id),
            self.model.id <= street.id,
        )
        return int(db.execute(stmt).scalar_one())


class OccupationCatalog:
    """PSOC occupation lookups."""

    def get(self, db: Session, code: str) -> Occupation | None:
        return db.get(Occupation, code)

    def search(self, db: Session, query: str, *, limit: int = 20) -> list[Occupation]:
        term = (query or "").strip()
        stmt = select(Occupation)
        if term:
            pattern = f"%{term.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Occupation.title).like(pattern),
                    Occupation.code.like(f"{term}%"),
                )
            )
        stmt = stmt.order_by(Occupation.level, Occupation.code).limit(limit)
        return list(db.execute(stmt).scalars())


__all__ = [
    "BarangayChain",
    "GeographyCatalog",
    "OccupationCatalog",
    "StreetRepo",
    "SubdivisionRepo",
]
