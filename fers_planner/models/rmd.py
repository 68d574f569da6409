"""
Required minimum distributions from traditional TSP balances.

Divisors come from the IRS Uniform Lifetime Table. The first distribution year
is prorated by the share of the calendar year remaining after the birthday on
which the RMD age is reached.
"""

from datetime import date

from .dates import age_at, birthday_in_year, fraction_of_year_after, rmd_age, year_end

UNIFORM_LIFETIME_TABLE = {
    72: 27.4,
    73: 26.5,
    74: 25.5,
    75: 24.6,
    76: 23.7,
    77: 22.9,
    78: 22.0,
    79: 21.1,
    80: 20.2,
    81: 19.4,
    82: 18.5,
    83: 17.7,
    84: 16.8,
    85: 16.0,
    86: 15.2,
    87: 14.4,
    88: 13.7,
    89: 12.9,
    90: 12.2,
    91: 11.5,
    92: 10.8,
    93: 10.1,
    94: 9.5,
    95: 8.9,
    96: 8.4,
    97: 7.8,
    98: 7.3,
    99: 6.8,
    100: 6.4,
}
DIVISOR_AFTER_100 = 6.0


def distribution_period(age: int) -> float:
    """Uniform Lifetime divisor for an age; ages below the table use the first entry."""
    if age > 100:
        return DIVISOR_AFTER_100
    return UNIFORM_LIFETIME_TABLE.get(age, UNIFORM_LIFETIME_TABLE[72])


def calculate_rmd(traditional_balance: float, birth_year: int, age: int) -> float:
    """Full-year RMD on a traditional balance, 0 before the RMD age."""
    if age < rmd_age(birth_year) or traditional_balance <= 0:
        return 0.0
    return traditional_balance / distribution_period(age)


def rmd_for_year(traditional_balance: float, birth_date: date, year: int) -> float:
    """RMD owed for calendar ``year``.

    In the year the RMD age is reached the full RMD at that age is prorated by
    the fraction of the year after the birthday (true days-in-year). In later
    years the full RMD at the January 1 age applies.
    """
    required_age = rmd_age(birth_date.year)
    age_start = age_at(birth_date, date(year, 1, 1))
    age_end = age_at(birth_date, year_end(year))

    if age_start < required_age <= age_end:
        full = calculate_rmd(traditional_balance, birth_date.year, required_age)
        return full * fraction_of_year_after(birthday_in_year(birth_date, year))
    return calculate_rmd(traditional_balance, birth_date.year, age_start)
