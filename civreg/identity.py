"""Parsing and formatting of hierarchical household identifiers.

Identifier layout: ``RRPPMMBBB-SSSS-TTTT-HHHH`` where the first block is the
9-digit PSGC barangay code (region, province, city/municipality, barangay)
and the remaining blocks are zero-padded subdivision, street and house
sequence numbers. Sequence allocation lives in ``app.services.identity``;
this module is pure.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import ConsistencyError, ValidationError

LEAF_SEGMENT_WIDTHS: tuple[int, int, int, int] = (2, 2, 2, 3)
LEAF_CODE_LENGTH = sum(LEAF_SEGMENT_WIDTHS)
SEQUENCE_WIDTH = 4
MAX_SEQUENCE = 10**SEQUENCE_WIDTH - 1
NO_SEQUENCE = 0

_CODE_PATTERN = re.compile(r"^(\d{9})-(\d{4})-(\d{4})-(\d{4})$")


@dataclass(frozen=True)
class LeafCode:
    """A barangay code split into its fixed-width segments."""

    region: str
    province: str
    city: str
    barangay: str

    @property
    def code(self) -> str:
        return f"{self.region}{self.province}{self.city}{self.barangay}"

    def __str__(self) -> str:
        return self.code


@dataclass(frozen=True)
class HouseholdCode:
    leaf: LeafCode
    subdivision_seq: int
    street_seq: int
    house_seq: int

    def __str__(self) -> str:
        return format_household_code(
            self.leaf.code, self.subdivision_seq, self.street_seq, self.house_seq
        )


def parse_leaf_code(value: str | None) -> LeafCode:
    """Split a 9-digit barangay code; malformed input raises ``ValidationError``."""

    raw = (value or "").strip()
    if len(raw) != LEAF_CODE_LENGTH:
        raise ValidationError(
            f"Barangay code must be {LEAF_CODE_LENGTH} digits, got {len(raw)}",
            field="barangay_code",
        )
    if not raw.isdigit():
        raise ValidationError("Barangay code must contain digits only", field="barangay_code")

    parts: list[str] = []
    offset = 0
    for width in LEAF_SEGMENT_WIDTHS:
        parts.append(raw[offset : offset + width])
        offset += width
    return LeafCode(*parts)


def _pad(value: int, label: str) -> str:
    if value < 0 or value > MAX_SEQUENCE:
        raise ConsistencyError(
            f"{label} sequence {value} does not fit in {SEQUENCE_WIDTH} digits",
            field=f"{label}_seq",
        )
    return f"{value:0{SEQUENCE_WIDTH}d}"


def format_household_code(
    leaf_code: str, subdivision_seq: int, street_seq: int, house_seq: int
) -> str:
    leaf = parse_leaf_code(leaf_code)
    return "-".join(
        (
            leaf.code,
            _pad(subdivision_seq, "subdivision"),
            _pad(street_seq, "street"),
            _pad(house_seq, "house"),
        )
    )


def parse_household_code(value: str) -> HouseholdCode:
    match = _CODE_PATTERN.match(value or "")
    if match is None:
        raise ValidationError(f"Malformed household code {value!r}", field="code")
    leaf, subdivision, street, house = match.groups()
    return HouseholdCode(
        leaf=parse_leaf_code(leaf),
        subdivision_seq=int(subdivision),
        street_seq=int(street),
        house_seq=int(house),
    )


__all__ = [
    "HouseholdCode",
    "LEAF_CODE_LENGTH",
    "LeafCode",
    "MAX_SEQUENCE",
    "NO_SEQUENCE",
    "format_household_code",
    "parse_household_code",
    "parse_leaf_code",
]
