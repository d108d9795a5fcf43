"""Constrained field types shared by request schemas and service payloads."""

from __future__ import annotations

from decimal import Decimal

from pydantic import condecimal, conint, constr

# Numeric(14, 2) leaves room for twelve whole digits.
MAX_MONEY = Decimal("999999999999.99")

PersonName = constr(strip_whitespace=True, min_length=1, max_length=100)
PlaceName = constr(strip_whitespace=True, min_length=1, max_length=100)
MiddleName = constr(strip_whitespace=True, max_length=100)
ExtensionName = constr(strip_whitespace=True, max_length=20)
OccupationCode = constr(strip_whitespace=True, max_length=10)
HouseNumber = constr(strip_whitespace=True, max_length=50)
Relationship = constr(strip_whitespace=True, max_length=50)
Label = constr(strip_whitespace=True, max_length=200)
Notes = constr(strip_whitespace=True, max_length=2000)
BarangayCode = constr(strip_whitespace=True, pattern=r"^\d{9}$")

Money = condecimal(ge=0, le=MAX_MONEY, max_digits=14, decimal_places=2)
RecordId = conint(strict=True, ge=1)
PositiveCount = conint(strict=True, ge=1)
MonthCount = conint(strict=True, ge=0)

__all__ = [
    "BarangayCode",
    "ExtensionName",
    "HouseNumber",
    "Label",
    "MAX_MONEY",
    "MiddleName",
    "MonthCount",
    "Money",
    "Notes",
    "OccupationCode",
    "PersonName",
    "PlaceName",
    "PositiveCount",
    "RecordId",
    "Relationship",
]
