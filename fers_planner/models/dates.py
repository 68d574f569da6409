"""
Calendar helpers for retirement projections.

All projection dates are calendar dates. Two day-count conventions are used
on purpose and must not be unified:

- partial work years and partial death years divide by a flat 365 days;
- Social Security and RMD birthday proration divide by the true number of
  days in the calendar year.
"""

from datetime import date, datetime, time

FLAT_DAYS_PER_YEAR = 365
SECONDS_PER_DAY = 86400
END_OF_DAY = time(23, 59, 59)
DAYS_PER_SERVICE_YEAR = 365.25
HOURS_PER_SICK_DAY = 8
MEDICARE_ELIGIBILITY_AGE = 65


def age_at(birth_date: date, at: date) -> int:
    """Whole years of age on a given date."""
    age = at.year - birth_date.year
    if (at.month, at.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def years_of_service(hire_date: date, at: date, sick_leave_hours: float = 0.0) -> float:
    """Creditable service in years, including unused sick leave.

    Service time is measured in 365.25-day years. Each 8 hours of sick leave
    credits one day of service.

    Args:
        hire_date: Date federal service began
        at: Date at which service is measured
        sick_leave_hours: Unused sick leave hours credited at retirement

    Returns:
        Years of service rounded to 4 decimal places
    """
    years = (at - hire_date).days / DAYS_PER_SERVICE_YEAR
    if sick_leave_hours > 0:
        years += sick_leave_hours / HOURS_PER_SICK_DAY / DAYS_PER_SERVICE_YEAR
    return round(years, 4)


def full_retirement_age(birth_date: date) -> int:
    """Social Security full retirement age, in whole years."""
    if birth_date.year <= 1942:
        return 65
    if birth_date.year <= 1959:
        return 66
    return 67


def minimum_retirement_age(birth_date: date) -> int:
    """FERS minimum retirement age (MRA), in whole years."""
    if birth_date.year <= 1952:
        return 55
    if birth_date.year <= 1969:
        return 56
    return 57


def rmd_age(birth_year: int) -> int:
    """Age at which required minimum distributions begin (SECURE 2.0)."""
    if birth_year <= 1950:
        return 72
    if birth_year <= 1959:
        return 73
    return 75


def is_rmd_year(birth_date: date, at: date) -> bool:
    """True once the person has reached their RMD age."""
    return age_at(birth_date, at) >= rmd_age(birth_date.year)


def is_medicare_eligible(birth_date: date, at: date) -> bool:
    return age_at(birth_date, at) >= MEDICARE_ELIGIBILITY_AGE


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_year(year: int) -> int:
    return 366 if is_leap_year(year) else 365


def year_start(year: int) -> date:
    return date(year, 1, 1)


def year_end(year: int) -> date:
    return date(year, 12, 31)


def birthday_in_year(birth_date: date, year: int) -> date:
    """The person's birthday in ``year``.

    A February 29 birthday falls on March 1 in common years, which keeps it
    consistent with :func:`age_at`.
    """
    if birth_date.month == 2 and birth_date.day == 29 and not is_leap_year(year):
        return date(year, 3, 1)
    return date(year, birth_date.month, birth_date.day)


def add_years(d: date, years: int) -> date:
    """Shift a date by whole years, moving Feb 29 to Mar 1 when needed."""
    target_year = d.year + years
    if d.month == 2 and d.day == 29 and not is_leap_year(target_year):
        return date(target_year, 3, 1)
    return date(target_year, d.month, d.day)


def fraction_of_year_after(d: date) -> float:
    """Share of the calendar year from the start of ``d`` to December 31 23:59:59.

    Divides by the true number of days in the year.
    """
    end = datetime.combine(year_end(d.year), END_OF_DAY)
    remaining = (end - datetime.combine(d, time())).total_seconds() / SECONDS_PER_DAY
    return max(0.0, remaining / days_in_year(d.year))


def fraction_of_year_before(d: date) -> float:
    """Share of a flat 365-day year elapsed before ``d``."""
    return (d - year_start(d.year)).days / FLAT_DAYS_PER_YEAR


def work_fraction(retirement_date: date, year: int) -> float:
    """Fraction of ``year`` spent working given a retirement date.

    Returns 1.0 for years before the retirement year and 0.0 after it. In the
    retirement year itself the days from January 1 to the retirement date are
    divided by a flat 365.
    """
    if year < retirement_date.year:
        return 1.0
    if year > retirement_date.year:
        return 0.0
    return fraction_of_year_before(retirement_date)
