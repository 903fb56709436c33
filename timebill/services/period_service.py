"""
Period Calculator - ISO-8601 week arithmetic.

Pure calendar math on dates. Callers convert instants to local dates first;
nothing here looks at a timezone.
"""

import datetime
from typing import List, NamedTuple


class WeekBounds(NamedTuple):
    """Monday..Sunday of one ISO week, both inclusive"""
    start: datetime.date
    end: datetime.date

    def contains(self, day: datetime.date) -> bool:
        return self.start <= day <= self.end

    @property
    def days(self) -> List[datetime.date]:
        return [self.start + datetime.timedelta(days=i) for i in range(7)]


def week_bounds(reference_date: datetime.date, week_offset: int = 0) -> WeekBounds:
    """
    The ISO week that contains `reference_date` shifted by `week_offset` weeks.

    Args:
        reference_date: Any day; a datetime is reduced to its date
        week_offset: 0 for this week, -1 for last week, 1 for next week...

    Returns:
        WeekBounds with the Monday as start and the Sunday as end
    """
    if isinstance(reference_date, datetime.datetime):
        reference_date = reference_date.date()
    shifted = reference_date + datetime.timedelta(days=7 * week_offset)
    # isoweekday: Monday=1 .. Sunday=7
    monday = shifted - datetime.timedelta(days=shifted.isoweekday() - 1)
    return WeekBounds(monday, monday + datetime.timedelta(days=6))


def week_number(day: datetime.date) -> int:
    """
    ISO-8601 week number.

    Week 1 is the week holding the year's first Thursday. The date is moved to
    the Thursday of its own week; the year of that Thursday is the ISO year,
    and the week number counts Thursdays from that year's first one.
    """
    if isinstance(day, datetime.datetime):
        day = day.date()
    thursday = day + datetime.timedelta(days=4 - day.isoweekday())
    return (thursday.timetuple().tm_yday - 1) // 7 + 1


def iso_year(day: datetime.date) -> int:
    """Year the ISO week of `day` belongs to (differs around New Year)"""
    return (day + datetime.timedelta(days=4 - day.isoweekday())).year
