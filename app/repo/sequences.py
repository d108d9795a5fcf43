from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.db.models import HouseholdSequence


class SequenceRepo:
    """Atomic per-scope counters backing house sequence allocation."""

    model = HouseholdSequence

    def _where(self, barangay_code: str, subdivision_key: int, street_key: int):
        return (
            HouseholdSequence.barangay_code == barangay_code,
            HouseholdSequence.subdivision_key == subdivision_key,
            HouseholdSequence.street_key == street_key,
        )

    def bump(
        self,
        db: Session,
        barangay_code: str,
        subdivision_key: int,
        street_key: int,
        *,
        floor: int,
    ) -> int:
        """Increment the counter for the scope and return the new value.

        ``floor`` is the highest sequence already in use; the returned value is
        always greater than it. A missing counter row is created at ``floor + 1``.
        """

        where = self._where(barangay_code, subdivision_key, street_key)
        result = db.execute(
            update(HouseholdSequence)
            .where(*where)
            .values(last_value=HouseholdSequence.last_value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            value = floor + 1
            db.add(
                HouseholdSequence(
                    barangay_code=barangay_code,
                    subdivision_key=subdivision_key,
                    street_key=street_key,
                    last_value=value,
                )
            )
            db.flush()
            return value

        value = int(db.execute(select(HouseholdSequence.last_value).where(*where)).scalar_one())
        if value <= floor:
            value = floor + 1
            db.execute(
                update(HouseholdSequence)
                .where(*where)
                .values(last_value=value)
                .execution_options(synchronize_session=False)
            )
        return value


__all__ = ["SequenceRepo"]
