from __future__ import annotations

from datetime import date, timedelta

import pytest
from hypothesis import given, strategies as st

from civreg.classification import classify_resident, compute_age
from civreg.enums import EducationLevel, EmploymentStatus
from civreg.errors import ValidationError

AS_OF = date(2026, 1, 15)


def _years_before(reference: date, years: int) -> date:
    try:
        return reference.replace(year=reference.year - years)
    except ValueError:
        return reference.replace(year=reference.year - years, day=28)


def test_compute_age_counts_whole_years():
    assert compute_age(date(1966, 1, 15), AS_OF) == 60
    assert compute_age(date(1966, 1, 16), AS_OF) == 59
    assert compute_age(AS_OF, AS_OF) == 0


def test_leap_day_birthday_waits_for_march_in_common_years():
    assert compute_age(date(2004, 2, 29), date(2025, 2, 28)) == 20
    assert compute_age(date(2004, 2, 29), date(2025, 3, 1)) == 21


def test_future_birthdate_is_rejected():
    with pytest.raises(ValidationError) as excinfo:
        classify_resident(AS_OF + timedelta(days=1), as_of=AS_OF)
    assert excinfo.value.field == "birthdate"


def test_senior_threshold_is_sixtieth_birthday():
    on_birthday = classify_resident(date(1966, 1, 15), as_of=AS_OF)
    day_before = classify_resident(date(1966, 1, 16), as_of=AS_OF)
    assert on_birthday.is_senior_citizen is True
    assert day_before.is_senior_citizen is False


@given(age=st.integers(min_value=0, max_value=110))
def test_senior_flag_matches_age(age):
    flags = classify_resident(_years_before(AS_OF, age), as_of=AS_OF)
    assert flags.is_senior_citizen is (age >= 60)


@given(status=st.sampled_from(list(EmploymentStatus)))
def test_employment_flags_are_consistent(status):
    flags = classify_resident(date(1990, 1, 1), employment_status=status, as_of=AS_OF)
    if flags.is_employed or flags.is_unemployed:
        assert flags.is_labor_force
    assert not (flags.is_employed and flags.is_unemployed)


@pytest.mark.parametrize(
    "status, labor, employed, unemployed",
    [
        (EmploymentStatus.employed, True, True, False),
        (EmploymentStatus.self_employed, True, True, False),
        (EmploymentStatus.underemployed, True, False, False),
        (EmploymentStatus.unemployed, True, False, True),
        (EmploymentStatus.looking_for_work, True, False, True),
        (EmploymentStatus.student, False, False, False),
        (None, False, False, False),
    ],
)
def test_labor_force_table(status, labor, employed, unemployed):
    flags = classify_resident(date(1990, 1, 1), employment_status=status, as_of=AS_OF)
    assert (flags.is_labor_force, flags.is_employed, flags.is_unemployed) == (
        labor,
        employed,
        unemployed,
    )


def test_ten_year_old_not_in_school_is_out_of_school_child():
    flags = classify_resident(
        _years_before(AS_OF, 10),
        education_attainment=EducationLevel.elementary,
        is_graduate=False,
        as_of=AS_OF,
    )
    assert flags.is_out_of_school_children is True
    assert flags.is_out_of_school_youth is False


def test_completed_schooling_clears_out_of_school_child():
    flags = classify_resident(
        _years_before(AS_OF, 10),
        education_attainment="elementary",
        is_graduate=True,
        as_of=AS_OF,
    )
    assert flags.is_out_of_school_children is False


@pytest.mark.parametrize(
    "age, education, status, expected",
    [
        (20, EducationLevel.high_school, EmploymentStatus.unemployed, True),
        (20, EducationLevel.high_school, None, True),
        (20, EducationLevel.high_school, EmploymentStatus.employed, False),
        (20, EducationLevel.college, EmploymentStatus.unemployed, False),
        (25, EducationLevel.high_school, EmploymentStatus.unemployed, False),
        (15, None, None, True),
    ],
)
def test_out_of_school_youth(age, education, status, expected):
    flags = classify_resident(
        _years_before(AS_OF, age),
        employment_status=status,
        education_attainment=education,
        as_of=AS_OF,
    )
    assert flags.is_out_of_school_youth is expected


def test_unknown_employment_status_names_the_field():
    with pytest.raises(ValidationError) as excinfo:
        classify_resident(date(1990, 1, 1), employment_status="astronaut", as_of=AS_OF)
    assert excinfo.value.field == "employment_status"
