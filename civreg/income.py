"""Household income tier classification (monthly aggregate income, PHP)."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from .enums import IncomeClass

# Lower bounds, highest tier first. Anything below the last bound is poor.
INCOME_THRESHOLDS: tuple[tuple[Decimal, IncomeClass], ...] = (
    (Decimal("219140"), IncomeClass.rich),
    (Decimal("131484"), IncomeClass.high_income),
    (Decimal("76669"), IncomeClass.upper_middle_income),
    (Decimal("43828"), IncomeClass.middle_class),
    (Decimal("21194"), IncomeClass.lower_middle_class),
    (Decimal("9520"), IncomeClass.low_income),
)


def _as_decimal(value: Decimal | int | float | str | None) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def classify_income(monthly_income: Decimal | int | float | str | None) -> IncomeClass:
    """Map a monthly aggregate income to its tier.

    ``None``, unparseable and negative values fall into the lowest tier.
    """

    amount = _as_decimal(monthly_income)
    if amount is None or amount.is_nan() or amount < 0:
        return IncomeClass.poor
    for lower_bound, tier in INCOME_THRESHOLDS:
        if amount >= lower_bound:
            return tier
    return IncomeClass.poor


__all__ = ["INCOME_THRESHOLDS", "classify_income"]
