"""
Age calculation in completed calendar months.
"""

import datetime

from .exceptions import InvalidDateRange


def _as_date(value: datetime.date) -> datetime.date:
    # datetime and pandas.Timestamp are date subclasses; drop the time of day
    if isinstance(value, datetime.datetime):
        return value.date()
    if not isinstance(value, datetime.date):
        raise TypeError(f"Expected a date, got {type(value).__name__}")
    return value


def age_in_months(
    birth_date: datetime.date, observation_date: datetime.date
) -> int:
    """
    Whole calendar months elapsed between birth and observation.

    A month counts once its day-of-month is reached: Jan 15 -> Feb 10 is 0
    months, Jan 15 -> Feb 20 is 1 month.

    Args:
        birth_date: Date of birth.
        observation_date: Date the measurement was taken.

    Returns:
        Completed months, >= 0.

    Raises:
        InvalidDateRange: If observation_date is before birth_date.
    """
    birth = _as_date(birth_date)
    observed = _as_date(observation_date)
    if observed < birth:
        raise InvalidDateRange(birth, observed)

    months = (observed.year - birth.year) * 12 + (observed.month - birth.month)
    if observed.day < birth.day:
        months -= 1
    return max(months, 0)
